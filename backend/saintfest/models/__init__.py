from saintfest.models.candidate import Candidate, SelectionWeighting, TournamentConfig
from saintfest.models.layout import (
    BracketBounds,
    BracketLayout,
    CategoryLabel,
    Connector,
    MatchDimensions,
    TextMetadata,
)
from saintfest.models.published import PublishedBracket
from saintfest.models.tournament import (
    QUADRANTS,
    BracketEditAction,
    Category,
    Entrant,
    Match,
    Position,
    Round,
    Tournament,
)

__all__ = [
    "Candidate",
    "SelectionWeighting",
    "TournamentConfig",
    "QUADRANTS",
    "BracketEditAction",
    "Category",
    "Entrant",
    "Match",
    "Position",
    "Round",
    "Tournament",
    "BracketBounds",
    "BracketLayout",
    "CategoryLabel",
    "Connector",
    "MatchDimensions",
    "TextMetadata",
    "PublishedBracket",
]
