"""
Bracket structure: the 31 matches of a 32-entrant, two-halves bracket.

Round 1 pairs each category's entrants positionally (1v2, 3v4, 5v6, 7v8),
categories in quadrant order, so matches 1-8 are the left half and 9-16 the
right half. Every later match is fed by two consecutive matches of the
round before; halves stay separate until the championship.
"""

from typing import Dict, List

from saintfest.models.tournament import (
    QUADRANTS,
    ROUND_COUNT,
    Category,
    Match,
    Round,
)

ROUND_NAMES: Dict[int, str] = {
    1: "Round of 32",
    2: "Round of 16",
    3: "Quarterfinals",
    4: "Semifinals",
    5: "Championship",
}


def match_id(round_number: int, match_number: int) -> str:
    return f"R{round_number}-M{match_number}"


def order_by_quadrant(categories: List[Category]) -> List[Category]:
    return sorted(categories, key=lambda c: QUADRANTS.index(c.position))


def round1_matches_for_category(category: Category, first_match_number: int, is_left_side: bool) -> List[Match]:
    """Four round-1 matches for one category, entrants paired in list order."""
    matches: List[Match] = []
    entrants = category.entrants
    for i in range(0, len(entrants), 2):
        number = first_match_number + i // 2
        matches.append(Match(
            id=match_id(1, number),
            round_number=1,
            match_number=number,
            entrant1=entrants[i],
            entrant2=entrants[i + 1],
            is_left_side=is_left_side,
            category_id=category.id,
        ))
    return matches


def build_rounds(categories: List[Category]) -> List[Round]:
    """Build all rounds for the given categories. Only round 1 has entrants."""
    round1: List[Match] = []
    for category in order_by_quadrant(categories):
        round1.extend(round1_matches_for_category(category, len(round1) + 1, category.is_left_side))

    rounds = [Round(round_number=1, name=ROUND_NAMES[1], matches=round1)]
    previous = round1
    for round_number in range(2, ROUND_COUNT + 1):
        current: List[Match] = []
        for i in range(0, len(previous), 2):
            a, b = previous[i], previous[i + 1]
            number = i // 2 + 1
            is_championship = round_number == ROUND_COUNT
            current.append(Match(
                id=match_id(round_number, number),
                round_number=round_number,
                match_number=number,
                is_left_side=a.is_left_side and not is_championship,
                is_championship=is_championship,
                source_match_ids=[a.id, b.id],
            ))
        rounds.append(Round(round_number=round_number, name=ROUND_NAMES[round_number], matches=current))
        previous = current

    return rounds
