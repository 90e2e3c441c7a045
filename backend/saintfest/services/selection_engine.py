"""
Selection Engine: populates a 32-entrant bracket from the candidate pool.

Resolves 4 categories (forced by config or drawn at random from the
catalog), then samples 8 unique, eligible candidates per category.

Eligibility for a category:
  1. candidate carries the category's membership flag
  2. candidate not already consumed by another category of the draft
  3. candidate outside the exclusion window (when exclusion is enabled)

Sampling is without replacement and always driven by an injected
random.Random so a seed reproduces a draft exactly.
"""

import logging
import random
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from saintfest.models.candidate import Candidate, SelectionWeighting, TournamentConfig
from saintfest.models.tournament import (
    CATEGORY_COUNT,
    ENTRANTS_PER_CATEGORY,
    QUADRANTS,
    Category,
    Entrant,
    Quadrant,
    Tournament,
)
from saintfest.services.bracket_structure import build_rounds
from saintfest.services.category_catalog import CATEGORY_CATALOG, category_id_for, category_info

logger = logging.getLogger(__name__)

# Full reshuffles of the catalog before giving up on random category choice
MAX_CATEGORY_ATTEMPTS = 10

# Top-signal candidate is this many times likelier than the bottom one (plus one)
POPULARITY_WEIGHT_SPREAD = 4.0


class SelectionError(Exception):
    """Base exception for bracket selection failures"""
    pass


class InsufficientPool(SelectionError):
    """A category has fewer eligible candidates than the bracket needs"""

    def __init__(self, category_key: str, available: int, required: int = ENTRANTS_PER_CATEGORY):
        self.category_key = category_key
        self.available = available
        self.required = required
        self.shortfall = required - available
        super().__init__(
            f"Not enough eligible saints for category '{category_key}': "
            f"found {available}, need {required} (short by {self.shortfall})"
        )


class ExhaustedCategories(SelectionError):
    """Fewer than 4 categories can each supply a full set of entrants"""

    def __init__(self, found: int, required: int = CATEGORY_COUNT, attempts: int = MAX_CATEGORY_ATTEMPTS):
        self.found = found
        self.required = required
        self.attempts = attempts
        super().__init__(
            f"Only {found} of {required} categories could supply "
            f"{ENTRANTS_PER_CATEGORY} eligible saints after {attempts} attempts"
        )


# -----------------------------------------------------------------------------
# Filtering
# -----------------------------------------------------------------------------

def eligible_candidates(
    pool: Iterable[Candidate],
    category_key: str,
    config: TournamentConfig,
    consumed: Optional[Set[str]] = None,
) -> List[Candidate]:
    """Candidates eligible for *category_key*, in pool order."""
    consumed = consumed or set()
    return [
        c for c in pool
        if c.has_category(category_key)
        and c.id not in consumed
        and not config.is_recently_used(c)
    ]


# -----------------------------------------------------------------------------
# Sampling
# -----------------------------------------------------------------------------

def _signal(candidate: Candidate) -> float:
    return candidate.popularity_signal if candidate.popularity_signal is not None else 0.0


def popularity_weight(signal: float, low: float, high: float) -> float:
    """Strictly increasing in *signal*; 1.0 for everyone when low == high."""
    if high <= low:
        return 1.0
    return 1.0 + POPULARITY_WEIGHT_SPREAD * (signal - low) / (high - low)


def _sample_weighted(eligible: Sequence[Candidate], count: int, rng: random.Random) -> List[Candidate]:
    signals = [_signal(c) for c in eligible]
    low, high = min(signals), max(signals)
    remaining: List[Tuple[Candidate, float]] = [
        (c, popularity_weight(s, low, high)) for c, s in zip(eligible, signals)
    ]

    picked: List[Candidate] = []
    for _ in range(count):
        target = rng.random() * sum(w for _, w in remaining)
        cumulative = 0.0
        idx = 0
        for idx, (_candidate, weight) in enumerate(remaining):
            cumulative += weight
            if target < cumulative:
                break
        picked.append(remaining.pop(idx)[0])
    return picked


def _sample_balanced(eligible: Sequence[Candidate], count: int, rng: random.Random) -> List[Candidate]:
    """
    Median split into higher/lower popularity tiers, then an even draw from
    each, topping up from the other tier when one runs short. Picks are
    interleaved (higher, lower, ...) so round-1 pairs mix the tiers.
    """
    ranked = sorted(eligible, key=lambda c: -_signal(c))
    split = (len(ranked) + 1) // 2
    higher, lower = ranked[:split], ranked[split:]

    take_high = min(count // 2, len(higher))
    take_low = min(count - take_high, len(lower))
    take_high = min(len(higher), count - take_low)

    high_picks = rng.sample(higher, take_high)
    low_picks = rng.sample(lower, take_low)

    picked: List[Candidate] = []
    for i in range(max(take_high, take_low)):
        if i < take_high:
            picked.append(high_picks[i])
        if i < take_low:
            picked.append(low_picks[i])
    return picked


def sample_candidates(
    eligible: Sequence[Candidate],
    count: int,
    weighting: SelectionWeighting,
    rng: random.Random,
) -> List[Candidate]:
    """Draw *count* distinct candidates; caller guarantees len(eligible) >= count."""
    if weighting == "random":
        return rng.sample(list(eligible), count)
    if weighting == "popularity":
        return _sample_weighted(eligible, count, rng)
    if weighting == "balanced":
        return _sample_balanced(eligible, count, rng)
    raise ValueError(f"Unknown selection weighting: {weighting}")


def build_entrants(candidates: Sequence[Candidate]) -> List[Entrant]:
    """Seeds follow sampling order."""
    return [
        Entrant(
            candidate_id=c.id,
            name=c.name,
            seed=index + 1,
            image_url=c.image_url,
        )
        for index, c in enumerate(candidates)
    ]


def select_category_entrants(
    pool: Sequence[Candidate],
    category_key: str,
    config: TournamentConfig,
    consumed: Set[str],
    rng: random.Random,
    count: int = ENTRANTS_PER_CATEGORY,
) -> List[Entrant]:
    """
    Filter + sample for one category.

    Raises:
        InsufficientPool if fewer than *count* candidates are eligible
    """
    eligible = eligible_candidates(pool, category_key, config, consumed)
    if len(eligible) < count:
        raise InsufficientPool(category_key, len(eligible), count)

    chosen = sample_candidates(eligible, count, config.selection_weighting, rng)
    logger.debug(
        "Sampled %d of %d eligible for %s (%s)",
        count, len(eligible), category_key, config.selection_weighting,
    )
    return build_entrants(chosen)


def build_category(year: int, key: str, position: Quadrant, entrants: List[Entrant]) -> Category:
    info = category_info(key)
    return Category(
        id=category_id_for(year, key),
        key=key,
        name=info.name,
        color=info.color,
        position=position,
        entrants=entrants,
    )


# -----------------------------------------------------------------------------
# Category resolution
# -----------------------------------------------------------------------------

def _select_forced_categories(
    pool: Sequence[Candidate],
    config: TournamentConfig,
    rng: random.Random,
) -> List[Category]:
    keys = list(config.forced_categories or [])
    if len(keys) != CATEGORY_COUNT:
        raise ValueError(f"forced_categories must name exactly {CATEGORY_COUNT} categories, got {len(keys)}")

    consumed: Set[str] = set()
    categories: List[Category] = []
    for position, key in zip(QUADRANTS, keys):
        entrants = select_category_entrants(pool, key, config, consumed, rng)
        consumed.update(e.candidate_id for e in entrants)
        categories.append(build_category(config.year, key, position, entrants))
    return categories


def _select_random_categories(
    pool: Sequence[Candidate],
    config: TournamentConfig,
    rng: random.Random,
) -> List[Category]:
    catalog_keys = list(CATEGORY_CATALOG)
    best = 0

    for attempt in range(1, MAX_CATEGORY_ATTEMPTS + 1):
        order = rng.sample(catalog_keys, len(catalog_keys))
        consumed: Set[str] = set()
        chosen: List[Tuple[str, List[Entrant]]] = []

        for key in order:
            try:
                entrants = select_category_entrants(pool, key, config, consumed, rng)
            except InsufficientPool as exc:
                logger.debug("Attempt %d: skipping %s (%s)", attempt, key, exc)
                continue
            consumed.update(e.candidate_id for e in entrants)
            chosen.append((key, entrants))
            if len(chosen) == CATEGORY_COUNT:
                break

        if len(chosen) == CATEGORY_COUNT:
            return [
                build_category(config.year, key, position, entrants)
                for position, (key, entrants) in zip(QUADRANTS, chosen)
            ]

        best = max(best, len(chosen))
        logger.debug("Attempt %d found only %d usable categories", attempt, len(chosen))

    raise ExhaustedCategories(found=best)


def select(
    pool: Sequence[Candidate],
    config: TournamentConfig,
    rng: Optional[random.Random] = None,
) -> Tournament:
    """
    Build a tournament draft (no positions yet) from the pool.

    Raises:
        InsufficientPool when a forced category cannot supply 8 entrants
        ExhaustedCategories when random choice cannot find 4 usable categories
    """
    rng = rng or random.Random()

    if config.forced_categories:
        categories = _select_forced_categories(pool, config, rng)
    else:
        categories = _select_random_categories(pool, config, rng)

    tournament = Tournament(
        year=config.year,
        title=f"Saintfest {config.year}",
        config=config,
        categories=categories,
        rounds=build_rounds(categories),
    )
    logger.info(
        "Generated %s with categories %s (%s weighting)",
        tournament.title,
        ", ".join(c.key for c in categories),
        config.selection_weighting,
    )
    return tournament
