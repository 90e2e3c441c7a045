"""
Bracket Editor: bounded edits on a tournament draft.

Every operation validates first, then works on a deep copy and returns it;
the caller's draft is never touched. Invariants enforced on the result:

1. **4 x 8 unique entrants**: no candidate used twice across categories
2. **Round-1 alignment**: a category's round-1 matches pair its entrants in order
3. **Vote reset**: any match whose entrants changed has zero votes
4. **Locality**: matches the edit did not touch are left exactly as they were
5. **No stale progress**: an entrant whose round-1 pairing changed holds no later-round slot

The caller re-runs the layout engine on the returned draft.
"""

import logging
import random
from typing import Dict, List, Optional, Sequence, Set

from saintfest.models.candidate import Candidate
from saintfest.models.tournament import BracketEditAction, Category, Entrant, Match, Tournament
from saintfest.services.bracket_invariants import InvariantReport, verify_tournament
from saintfest.services.category_catalog import category_id_for, category_info, is_known_category
from saintfest.services.selection_engine import eligible_candidates, select_category_entrants

logger = logging.getLogger(__name__)


class BracketEditError(Exception):
    """Base exception for bracket edit errors"""
    pass


class UnknownReference(BracketEditError):
    """An edit names a category or candidate that cannot be resolved"""

    def __init__(self, kind: str, reference: str):
        self.kind = kind
        self.reference = reference
        super().__init__(f"Unknown {kind}: {reference}")


class InvalidCandidateForCategory(BracketEditError):
    """Replacement candidate lacks the category flag or is already in the bracket"""

    def __init__(self, candidate_id: str, category_key: str, reason: str):
        self.candidate_id = candidate_id
        self.category_key = category_key
        self.reason = reason
        super().__init__(f"Saint {candidate_id} cannot be used in {category_key}: {reason}")


class DuplicateCategory(BracketEditError):
    """Target category is already used by another quadrant of the draft"""

    def __init__(self, category_key: str):
        self.category_key = category_key
        super().__init__(f"Category {category_key} is already in the bracket")


class InvariantViolation(BracketEditError):
    """An edit produced a draft that fails structural verification"""

    def __init__(self, report: InvariantReport):
        self.report = report
        super().__init__("Edit produced an invalid bracket: " + ", ".join(report.codes()))


# ─── Helpers ──────────────────────────────────────────────────────────────

def _category_index(tournament: Tournament, category_id: str) -> int:
    for i, c in enumerate(tournament.categories):
        if c.id == category_id:
            return i
    raise UnknownReference("category", category_id)


def _ids_outside(tournament: Tournament, category_index: int) -> Set[str]:
    return {
        e.candidate_id
        for i, c in enumerate(tournament.categories) if i != category_index
        for e in c.entrants
    }


def _rewrite(match: Match, entrant1: Optional[Entrant], entrant2: Optional[Entrant], **extra) -> Match:
    return match.model_copy(update={
        "entrant1": entrant1,
        "entrant2": entrant2,
        "votes_for_entrant1": 0,
        "votes_for_entrant2": 0,
        **extra,
    })


def _finalize(draft: Tournament, operation: str) -> Tournament:
    report = verify_tournament(draft)
    if not report.ok:
        logger.error("%s produced invalid bracket: %s", operation, report.to_dict())
        raise InvariantViolation(report)
    return draft


def _replace_category(tournament: Tournament, index: int, updated: Category) -> Tournament:
    """
    Swap in *updated* for the category at *index* and rewrite dependent matches.

    A round-1 match keeps its votes only when its pair is unchanged. Every
    entrant of a re-paired match loses any later-round slot it had reached.
    """
    draft = tournament.model_copy(deep=True)
    old = draft.categories[index]
    draft.categories[index] = updated

    stale: Set[str] = set()
    round1 = draft.round(1)
    if round1 is not None:
        owned = sorted(
            (i for i, m in enumerate(round1.matches) if m.category_id == old.id),
            key=lambda i: round1.matches[i].match_number,
        )
        for pair, i in enumerate(owned):
            match = round1.matches[i]
            entrant1, entrant2 = updated.entrants[2 * pair], updated.entrants[2 * pair + 1]
            if match.entrant_ids == (entrant1.candidate_id, entrant2.candidate_id):
                round1.matches[i] = match.model_copy(update={"category_id": updated.id})
                continue
            stale.update(cid for cid in match.entrant_ids if cid is not None)
            round1.matches[i] = _rewrite(match, entrant1, entrant2, category_id=updated.id)

    for rnd in draft.rounds:
        if rnd.round_number == 1:
            continue
        for i, m in enumerate(rnd.matches):
            a, b = m.entrant_ids
            if a in stale or b in stale:
                rnd.matches[i] = _rewrite(
                    m,
                    None if a in stale else m.entrant1,
                    None if b in stale else m.entrant2,
                )
    return draft


# ─── Operations ───────────────────────────────────────────────────────────

def swap_category(
    tournament: Tournament,
    pool: Sequence[Candidate],
    category_id: str,
    new_category_key: str,
    rng: Optional[random.Random] = None,
) -> Tournament:
    """Replace a quadrant's category with *new_category_key* and 8 freshly sampled entrants."""
    index = _category_index(tournament, category_id)
    if not is_known_category(new_category_key):
        raise UnknownReference("category key", new_category_key)
    if any(c.key == new_category_key for i, c in enumerate(tournament.categories) if i != index):
        raise DuplicateCategory(new_category_key)

    rng = rng or random.Random()
    entrants = select_category_entrants(
        pool, new_category_key, tournament.config, _ids_outside(tournament, index), rng,
    )
    info = category_info(new_category_key)
    current = tournament.categories[index]
    updated = current.model_copy(update={
        "id": category_id_for(tournament.year, new_category_key),
        "key": new_category_key,
        "name": info.name,
        "color": info.color,
        "entrants": entrants,
    })

    draft = _finalize(_replace_category(tournament, index, updated), "swap_category")
    logger.info("Swapped category %s -> %s in %s", current.key, new_category_key, tournament.title)
    return draft


def regenerate_category(
    tournament: Tournament,
    pool: Sequence[Candidate],
    category_id: str,
    rng: Optional[random.Random] = None,
) -> Tournament:
    """Re-sample all 8 entrants of a category, keeping its key."""
    index = _category_index(tournament, category_id)
    current = tournament.categories[index]

    rng = rng or random.Random()
    entrants = select_category_entrants(
        pool, current.key, tournament.config, _ids_outside(tournament, index), rng,
    )
    updated = current.model_copy(update={"entrants": entrants})

    draft = _finalize(_replace_category(tournament, index, updated), "regenerate_category")
    logger.info("Regenerated category %s in %s", current.key, tournament.title)
    return draft


def swap_saint(
    tournament: Tournament,
    pool: Sequence[Candidate],
    category_id: str,
    candidate_id: str,
    new_candidate_id: str,
) -> Tournament:
    """Replace one entrant, keeping its seed, everywhere it appears in the bracket."""
    index = _category_index(tournament, category_id)
    category = tournament.categories[index]
    old = category.entrant(candidate_id)
    if old is None:
        raise UnknownReference("candidate", candidate_id)

    by_id: Dict[str, Candidate] = {c.id: c for c in pool}
    replacement = by_id.get(new_candidate_id)
    if replacement is None:
        raise UnknownReference("candidate", new_candidate_id)
    if not replacement.has_category(category.key):
        raise InvalidCandidateForCategory(new_candidate_id, category.key, "not in this category")
    if new_candidate_id in tournament.candidate_ids():
        raise InvalidCandidateForCategory(new_candidate_id, category.key, "already in the bracket")

    new_entrant = Entrant(
        candidate_id=replacement.id,
        name=replacement.name,
        seed=old.seed,
        image_url=replacement.image_url,
    )

    draft = tournament.model_copy(deep=True)
    draft.categories[index].entrants = [
        new_entrant if e.candidate_id == candidate_id else e
        for e in draft.categories[index].entrants
    ]
    for rnd in draft.rounds:
        for i, m in enumerate(rnd.matches):
            if not m.references(candidate_id):
                continue
            a, b = m.entrant_ids
            rnd.matches[i] = _rewrite(
                m,
                new_entrant if a == candidate_id else m.entrant1,
                new_entrant if b == candidate_id else m.entrant2,
            )

    draft = _finalize(draft, "swap_saint")
    logger.info("Swapped %s -> %s in %s", candidate_id, new_candidate_id, category.id)
    return draft


def apply_edit(
    tournament: Tournament,
    pool: Sequence[Candidate],
    action: BracketEditAction,
    rng: Optional[random.Random] = None,
) -> Tournament:
    """Dispatch an admin edit action to the matching operation."""
    if action.type == "swap-category":
        if not action.new_category_key:
            raise BracketEditError("swap-category requires new_category_key")
        return swap_category(tournament, pool, action.category_id, action.new_category_key, rng)

    if action.type == "swap-saint":
        if not action.candidate_id or not action.new_candidate_id:
            raise BracketEditError("swap-saint requires candidate_id and new_candidate_id")
        return swap_saint(tournament, pool, action.category_id, action.candidate_id, action.new_candidate_id)

    if action.type == "regenerate-category":
        return regenerate_category(tournament, pool, action.category_id, rng)

    raise BracketEditError(f"Unknown edit action: {action.type}")


def available_candidates(
    tournament: Tournament,
    pool: Sequence[Candidate],
    category_key: str,
) -> List[Candidate]:
    """Candidates that could be swapped into *category_key* right now."""
    return eligible_candidates(pool, category_key, tournament.config, set(tournament.candidate_ids()))
