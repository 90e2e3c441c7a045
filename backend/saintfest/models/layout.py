from typing import List, Literal, Optional

from pydantic import BaseModel

from saintfest.models.tournament import Match, Quadrant


class Connector(BaseModel):
    id: str
    orientation: Literal["horizontal", "vertical"]
    x1: float
    y1: float
    x2: float
    y2: float
    stroke_width: float


class CategoryLabel(BaseModel):
    category_id: str
    name: str
    color: str
    position: Quadrant
    is_left_side: bool
    x: float
    center_y: float
    top: float     # top of the first round-1 match of the category
    bottom: float  # bottom of the last round-1 match of the category


class BracketBounds(BaseModel):
    width: float
    height: float


class MatchDimensions(BaseModel):
    width: float
    height: float
    row_height: float


class TextMetadata(BaseModel):
    longest_name: str
    max_text_width: float
    max_text_height: float


class BracketLayout(BaseModel):
    """Output of the layout engine: everything a renderer needs, in pixels."""

    matches: List[Match]
    connectors: List[Connector]
    bounds: BracketBounds
    dimensions: MatchDimensions
    category_labels: List[CategoryLabel]
    text: TextMetadata

    def match(self, match_id: str) -> Optional[Match]:
        for m in self.matches:
            if m.id == match_id:
                return m
        return None
