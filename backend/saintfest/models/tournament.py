from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

from saintfest.models.candidate import TournamentConfig

Quadrant = Literal["top-left", "bottom-left", "top-right", "bottom-right"]

# Assignment order: the left half first, then the right half
QUADRANTS: Tuple[Quadrant, ...] = ("top-left", "bottom-left", "top-right", "bottom-right")
LEFT_QUADRANTS = frozenset({"top-left", "bottom-left"})

ENTRANTS_PER_CATEGORY = 8
CATEGORY_COUNT = 4
ROUND_COUNT = 5

EditActionType = Literal["swap-category", "swap-saint", "regenerate-category"]


class Entrant(BaseModel):
    """A seeded reference to a pool candidate."""

    candidate_id: str
    name: str
    seed: int = Field(ge=1, le=ENTRANTS_PER_CATEGORY)
    image_url: Optional[str] = None


class Category(BaseModel):
    id: str
    key: str
    name: str
    color: str
    position: Quadrant
    entrants: List[Entrant]

    @property
    def is_left_side(self) -> bool:
        return self.position in LEFT_QUADRANTS

    def entrant(self, candidate_id: str) -> Optional[Entrant]:
        for e in self.entrants:
            if e.candidate_id == candidate_id:
                return e
        return None


class Position(BaseModel):
    x: float
    y: float
    width: float
    height: float

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    @property
    def right(self) -> float:
        return self.x + self.width


class Match(BaseModel):
    id: str
    round_number: int
    match_number: int
    entrant1: Optional[Entrant] = None
    entrant2: Optional[Entrant] = None
    votes_for_entrant1: int = 0
    votes_for_entrant2: int = 0
    is_left_side: bool = False
    is_championship: bool = False
    category_id: Optional[str] = None  # round 1 only
    source_match_ids: List[str] = Field(default_factory=list)
    position: Optional[Position] = None

    @property
    def entrant_ids(self) -> Tuple[Optional[str], Optional[str]]:
        return (
            self.entrant1.candidate_id if self.entrant1 else None,
            self.entrant2.candidate_id if self.entrant2 else None,
        )

    def references(self, candidate_id: str) -> bool:
        return candidate_id in self.entrant_ids


class Round(BaseModel):
    round_number: int
    name: str
    matches: List[Match]


class Tournament(BaseModel):
    """A bracket draft. Editor operations return new drafts; this one is never mutated."""

    year: int
    title: str
    config: TournamentConfig
    categories: List[Category]
    rounds: List[Round] = Field(default_factory=list)

    def category(self, category_id: str) -> Optional[Category]:
        for c in self.categories:
            if c.id == category_id:
                return c
        return None

    def candidate_ids(self) -> List[str]:
        return [e.candidate_id for c in self.categories for e in c.entrants]

    def round(self, round_number: int) -> Optional[Round]:
        for r in self.rounds:
            if r.round_number == round_number:
                return r
        return None

    def all_matches(self) -> List[Match]:
        return [m for r in self.rounds for m in r.matches]


class BracketEditAction(BaseModel):
    type: EditActionType
    category_id: str
    new_category_key: Optional[str] = None
    candidate_id: Optional[str] = None
    new_candidate_id: Optional[str] = None
