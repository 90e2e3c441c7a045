"""
Bracket Invariant Verifier
==========================
Structural checks every tournament draft must pass.

Invariants:
  A) Exactly 4 categories, each with exactly 8 entrants seeded 1..8
  B) No candidate appears twice anywhere in the bracket
  C) Categories occupy the 4 quadrants one-to-one
  D) Round sizes halve exactly: 16, 8, 4, 2, 1
  E) Each category owns 4 round-1 matches pairing its entrants in list
     order (1st v 2nd, 3rd v 4th, ...), on the category's half
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from saintfest.models.tournament import (
    CATEGORY_COUNT,
    ENTRANTS_PER_CATEGORY,
    QUADRANTS,
    Tournament,
)

EXPECTED_ROUND_SIZES = [16, 8, 4, 2, 1]


# ─── Data structures ─────────────────────────────────────────────────────

@dataclass
class Violation:
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None


@dataclass
class InvariantReport:
    ok: bool
    violations: List[Violation] = field(default_factory=list)

    def codes(self) -> List[str]:
        return [v.code for v in self.violations]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "violations": [
                {"code": v.code, "message": v.message, "context": v.context}
                for v in self.violations
            ],
        }


# ─── Invariant A: category and entrant counts ─────────────────────────────

def _check_counts(tournament: Tournament) -> List[Violation]:
    violations: List[Violation] = []
    if len(tournament.categories) != CATEGORY_COUNT:
        violations.append(Violation(
            code="CATEGORY_COUNT",
            message=f"Expected {CATEGORY_COUNT} categories, found {len(tournament.categories)}",
        ))
    for category in tournament.categories:
        if len(category.entrants) != ENTRANTS_PER_CATEGORY:
            violations.append(Violation(
                code="ENTRANT_COUNT",
                message=f"Category {category.id} has {len(category.entrants)} entrants",
                context={"category_id": category.id},
            ))
        seeds = sorted(e.seed for e in category.entrants)
        if seeds != list(range(1, len(category.entrants) + 1)):
            violations.append(Violation(
                code="SEEDS",
                message=f"Category {category.id} seeds are {seeds}",
                context={"category_id": category.id},
            ))
    return violations


# ─── Invariant B: global candidate uniqueness ─────────────────────────────

def _check_unique_candidates(tournament: Tournament) -> List[Violation]:
    counts = Counter(tournament.candidate_ids())
    return [
        Violation(
            code="DUPLICATE_CANDIDATE",
            message=f"Candidate {cid} appears {n} times",
            context={"candidate_id": cid},
        )
        for cid, n in sorted(counts.items())
        if n > 1
    ]


# ─── Invariant C: quadrant bijection ──────────────────────────────────────

def _check_quadrants(tournament: Tournament) -> List[Violation]:
    positions = sorted(c.position for c in tournament.categories)
    if positions != sorted(QUADRANTS):
        return [Violation(
            code="QUADRANTS",
            message=f"Categories must fill each quadrant once, got {positions}",
        )]
    return []


# ─── Invariant D: round sizes ─────────────────────────────────────────────

def _check_round_sizes(tournament: Tournament) -> List[Violation]:
    sizes = [len(r.matches) for r in sorted(tournament.rounds, key=lambda r: r.round_number)]
    if sizes != EXPECTED_ROUND_SIZES:
        return [Violation(
            code="ROUND_SIZES",
            message=f"Round sizes must be {EXPECTED_ROUND_SIZES}, got {sizes}",
        )]
    return []


# ─── Invariant E: round-1 alignment ───────────────────────────────────────

def _check_round1_alignment(tournament: Tournament) -> List[Violation]:
    round1 = tournament.round(1)
    if round1 is None:
        return [Violation(code="ROUND1_MISSING", message="Round 1 is missing")]

    violations: List[Violation] = []
    for category in tournament.categories:
        matches = sorted(
            (m for m in round1.matches if m.category_id == category.id),
            key=lambda m: m.match_number,
        )
        expected_pairs = [
            (category.entrants[i].candidate_id, category.entrants[i + 1].candidate_id)
            for i in range(0, len(category.entrants) - 1, 2)
        ]
        actual_pairs = [m.entrant_ids for m in matches]
        if actual_pairs != expected_pairs:
            violations.append(Violation(
                code="ROUND1_ALIGNMENT",
                message=f"Round-1 matches of {category.id} do not pair its entrants in order",
                context={"category_id": category.id},
            ))
        wrong_side = [m.id for m in matches if m.is_left_side != category.is_left_side]
        if wrong_side:
            violations.append(Violation(
                code="ROUND1_SIDE",
                message=f"Matches {wrong_side} are on the wrong half for {category.position}",
                context={"category_id": category.id, "match_ids": wrong_side},
            ))
    return violations


def verify_tournament(tournament: Tournament) -> InvariantReport:
    violations: List[Violation] = []
    violations.extend(_check_counts(tournament))
    violations.extend(_check_unique_candidates(tournament))
    violations.extend(_check_quadrants(tournament))
    violations.extend(_check_round_sizes(tournament))
    violations.extend(_check_round1_alignment(tournament))
    return InvariantReport(ok=not violations, violations=violations)
