"""
Publish: flatten a laid-out draft into the PublishedBracket export record
read by the PDF/image exporters and the public viewer. Nothing is stored.
"""

from datetime import datetime, timezone
from typing import Dict, Optional

from saintfest.config import LayoutSettings
from saintfest.models.layout import BracketLayout
from saintfest.models.published import (
    PublishedBracket,
    PublishedCategory,
    PublishedCenterOverlay,
    PublishedDimensions,
    PublishedEntrant,
    PublishedLabelPosition,
    PublishedMatch,
)
from saintfest.models.tournament import Entrant, Match, Tournament
from saintfest.services.bracket_structure import order_by_quadrant
from saintfest.services.text_metrics import Font, TextMetricsProvider, fit_text

RESPONSIVE_SCALES: Dict[str, float] = {"desktop": 1.0, "tablet": 0.75, "mobile": 0.5}
RESPONSIVE_BREAKPOINTS: Dict[str, int] = {"desktop": 1200, "tablet": 768, "mobile": 480}

CENTER_OVERLAY_TEXT = ["Blessed", "Intercessor"]
CENTER_OVERLAY_FONT_SIZE = 48
CENTER_OVERLAY_OPACITY = 0.1


def _label(entrant: Optional[Entrant], max_width: float, metrics: TextMetricsProvider, font: Font) -> Optional[str]:
    if entrant is None:
        return None
    return fit_text(entrant.name, max_width, metrics, font)


def _published_match(
    match: Match,
    metrics: TextMetricsProvider,
    font: Font,
    settings: LayoutSettings,
) -> PublishedMatch:
    if match.position is None:
        raise ValueError(f"Match {match.id} has no position; run the layout engine first")
    text_width = match.position.width - settings.horizontal_padding
    return PublishedMatch(
        id=match.id,
        round_number=match.round_number,
        match_number=match.match_number,
        entrant1_name=match.entrant1.name if match.entrant1 else None,
        entrant2_name=match.entrant2.name if match.entrant2 else None,
        entrant1_label=_label(match.entrant1, text_width, metrics, font),
        entrant2_label=_label(match.entrant2, text_width, metrics, font),
        entrant1_seed=match.entrant1.seed if match.entrant1 else None,
        entrant2_seed=match.entrant2.seed if match.entrant2 else None,
        votes_for_entrant1=match.votes_for_entrant1,
        votes_for_entrant2=match.votes_for_entrant2,
        position=match.position,
        category_id=match.category_id,
        is_left_side=match.is_left_side,
        is_championship=match.is_championship,
    )


def build_published_bracket(
    tournament: Tournament,
    bracket_layout: BracketLayout,
    published_by: str,
    metrics: TextMetricsProvider,
    settings: Optional[LayoutSettings] = None,
    published_at: Optional[datetime] = None,
) -> PublishedBracket:
    """Flatten *tournament* using the positions in *bracket_layout*."""
    settings = settings or LayoutSettings()
    font = Font(settings.font_family, settings.font_size)
    bounds = bracket_layout.bounds

    matches = [_published_match(m, metrics, font, settings) for m in bracket_layout.matches]

    labels = {label.category_id: label for label in bracket_layout.category_labels}
    categories = []
    for category in order_by_quadrant(tournament.categories):
        label = labels.get(category.id)
        if label is None:
            raise ValueError(f"Layout has no label for category {category.id}")
        categories.append(PublishedCategory(
            id=category.id,
            name=category.name,
            color=category.color,
            position=category.position,
            label_position=PublishedLabelPosition(
                x=label.x,
                y=label.top,
                center_y=label.center_y,
                quadrant_height=bounds.height / 2,
            ),
            entrants=[PublishedEntrant(name=e.name, seed=e.seed) for e in category.entrants],
        ))

    return PublishedBracket(
        year=tournament.year,
        title=tournament.title,
        published_at=published_at or datetime.now(timezone.utc),
        published_by=published_by,
        matches=matches,
        categories=categories,
        dimensions=PublishedDimensions(
            total_width=bounds.width,
            total_height=bounds.height,
            scales=dict(RESPONSIVE_SCALES),
            breakpoints=dict(RESPONSIVE_BREAKPOINTS),
        ),
        connectors=list(bracket_layout.connectors),
        center_overlay=PublishedCenterOverlay(
            text=list(CENTER_OVERLAY_TEXT),
            x=bounds.width / 2,
            y=bounds.height / 2,
            font_size=CENTER_OVERLAY_FONT_SIZE,
            font_family=settings.font_family,
            opacity=CENTER_OVERLAY_OPACITY,
        ),
    )
