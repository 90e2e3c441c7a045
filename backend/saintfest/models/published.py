from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel

from saintfest.models.layout import Connector
from saintfest.models.tournament import Position, Quadrant


class PublishedMatch(BaseModel):
    id: str
    round_number: int
    match_number: int
    entrant1_name: Optional[str] = None
    entrant2_name: Optional[str] = None
    entrant1_label: Optional[str] = None  # name fitted to the match box
    entrant2_label: Optional[str] = None
    entrant1_seed: Optional[int] = None
    entrant2_seed: Optional[int] = None
    votes_for_entrant1: int
    votes_for_entrant2: int
    position: Position
    category_id: Optional[str] = None
    is_left_side: bool
    is_championship: bool


class PublishedLabelPosition(BaseModel):
    x: float
    y: float
    center_y: float
    quadrant_height: float


class PublishedEntrant(BaseModel):
    name: str
    seed: int


class PublishedCategory(BaseModel):
    id: str
    name: str
    color: str
    position: Quadrant
    label_position: PublishedLabelPosition
    entrants: List[PublishedEntrant]


class PublishedDimensions(BaseModel):
    total_width: float
    total_height: float
    scales: Dict[str, float]
    breakpoints: Dict[str, int]


class PublishedCenterOverlay(BaseModel):
    text: List[str]
    x: float
    y: float
    font_size: int
    font_family: str
    opacity: float


class PublishedBracket(BaseModel):
    """Flattened, render-ready bracket consumed by exporters and the public viewer."""

    year: int
    title: str
    published_at: datetime
    published_by: str
    matches: List[PublishedMatch]
    categories: List[PublishedCategory]
    dimensions: PublishedDimensions
    connectors: List[Connector]
    center_overlay: PublishedCenterOverlay
    is_active: bool = True
