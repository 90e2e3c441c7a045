import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
FONT_PATH: Optional[str] = os.getenv("SAINTFEST_FONT_PATH") or None


class LayoutSettings(BaseModel):
    """Geometry constants for the bracket canvas (pixels)."""

    # Margins
    margin_left: float = 40
    margin_right: float = 40
    margin_top: float = 40
    margin_bottom: float = 40
    title_height: float = 120

    # Vertical rhythm of round 1
    match_spacing: float = 50
    category_spacing: float = 30  # extra gap between the two category blocks of a side

    # Match box sizing
    min_match_width: float = 120
    max_match_width: float = 240
    horizontal_padding: float = 20  # 10px each side
    row_height: float = 22
    row_padding: float = 8

    # Connectors
    connector_length: float = 40
    championship_gap: float = 80  # semifinal edge to championship edge
    championship_offset: float = 15
    stroke_width: float = 2

    # Category labels
    label_offset: float = 16

    # Text
    font_family: str = "Sorts Mill Goudy"
    font_size: int = 12


def get_layout_settings() -> LayoutSettings:
    """Layout settings with environment overrides applied."""
    overrides = {}
    family = os.getenv("SAINTFEST_FONT_FAMILY")
    if family:
        overrides["font_family"] = family
    size = os.getenv("SAINTFEST_FONT_SIZE")
    if size:
        overrides["font_size"] = int(size)
    max_width = os.getenv("SAINTFEST_MAX_MATCH_WIDTH")
    if max_width:
        overrides["max_match_width"] = float(max_width)
    offset = os.getenv("SAINTFEST_CHAMPIONSHIP_OFFSET")
    if offset:
        overrides["championship_offset"] = float(offset)
    return LayoutSettings(**overrides)


def get_cors_origins() -> List[str]:
    origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    extra = os.getenv("CORS_ORIGINS", "")
    if extra:
        origins.extend(o.strip() for o in extra.split(",") if o.strip())
    return origins
