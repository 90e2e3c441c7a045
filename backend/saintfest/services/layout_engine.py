"""
Layout Engine: pixel positions and connector routing for the bracket.

Pure function of (tournament, text metrics, settings): the same inputs give
byte-identical output, which export and layout tests depend on.

Geometry:
  * Match boxes are sized from the longest measured entrant name, clamped
    to the configured width range; height fits two name rows.
  * Round 1 stacks 8 matches per half, flush to the left/right margin, in
    two 4-match category blocks separated by extra spacing.
  * Each later side round merges consecutive pairs: two horizontal
    segments from the children's inner edges to a junction one connector
    length away, one vertical segment at the junction, and the parent box
    with its near edge on the junction, centred on the vertical span.
  * The two semifinals merge into the centred championship box. The left
    feed is raised and the right feed lowered by the championship offset
    through a jog in the gap, so each line ends on its own side of the box
    and the two stay distinct. No segment enters the box.
"""

import logging
from typing import Dict, List, Optional, Tuple

from saintfest.config import LayoutSettings
from saintfest.models.layout import (
    BracketBounds,
    BracketLayout,
    CategoryLabel,
    Connector,
    MatchDimensions,
    TextMetadata,
)
from saintfest.models.tournament import ROUND_COUNT, Match, Position, Tournament
from saintfest.services.bracket_structure import order_by_quadrant
from saintfest.services.text_metrics import Font, TextMetricsProvider

logger = logging.getLogger(__name__)

EXPECTED_ROUND_SIZES = {1: 16, 2: 8, 3: 4, 4: 2, 5: 1}
MATCHES_PER_SIDE_ROUND1 = 8
MATCHES_PER_CATEGORY = 4


# -----------------------------------------------------------------------------
# Sizing
# -----------------------------------------------------------------------------

def measure_entrants(
    tournament: Tournament,
    metrics: TextMetricsProvider,
    font: Font,
) -> TextMetadata:
    longest_name = ""
    max_width = 0.0
    max_height = 0.0
    for category in tournament.categories:
        for entrant in category.entrants:
            m = metrics.measure(entrant.name, font)
            if m.width > max_width:
                max_width = m.width
                longest_name = entrant.name
            max_height = max(max_height, m.height)
    return TextMetadata(longest_name=longest_name, max_text_width=max_width, max_text_height=max_height)


def match_dimensions(text: TextMetadata, settings: LayoutSettings) -> MatchDimensions:
    width = text.max_text_width + settings.horizontal_padding
    width = max(settings.min_match_width, min(width, settings.max_match_width))
    row_height = max(settings.row_height, text.max_text_height)
    return MatchDimensions(
        width=width,
        height=row_height * 2 + settings.row_padding,
        row_height=row_height,
    )


def canvas_bounds(dims: MatchDimensions, settings: LayoutSettings) -> BracketBounds:
    side_rounds = ROUND_COUNT - 1
    side_span = side_rounds * dims.width + (side_rounds - 1) * settings.connector_length
    width = (
        settings.margin_left
        + side_span
        + settings.championship_gap
        + dims.width
        + settings.championship_gap
        + side_span
        + settings.margin_right
    )
    height = _content_top(settings) + _side_height(dims, settings) + settings.margin_bottom
    return BracketBounds(width=width, height=height)


def _content_top(settings: LayoutSettings) -> float:
    return settings.margin_top + settings.title_height


def _block_height(dims: MatchDimensions, settings: LayoutSettings) -> float:
    return MATCHES_PER_CATEGORY * dims.height + (MATCHES_PER_CATEGORY - 1) * settings.match_spacing


def _side_height(dims: MatchDimensions, settings: LayoutSettings) -> float:
    return 2 * _block_height(dims, settings) + settings.match_spacing + settings.category_spacing


# -----------------------------------------------------------------------------
# Placement
# -----------------------------------------------------------------------------

def _place(match: Match, x: float, y: float, dims: MatchDimensions) -> Match:
    return match.model_copy(update={
        "position": Position(x=x, y=y, width=dims.width, height=dims.height),
    })


def _place_round1(
    matches: List[Match],
    dims: MatchDimensions,
    bounds: BracketBounds,
    settings: LayoutSettings,
) -> List[Match]:
    top = _content_top(settings)
    block_step = _block_height(dims, settings) + settings.match_spacing + settings.category_spacing
    left_x = settings.margin_left
    right_x = bounds.width - settings.margin_right - dims.width

    placed: List[Match] = []
    side_index = {True: 0, False: 0}
    for match in matches:
        k = side_index[match.is_left_side]
        side_index[match.is_left_side] += 1
        block, row = divmod(k, MATCHES_PER_CATEGORY)
        y = top + block * block_step + row * (dims.height + settings.match_spacing)
        x = left_x if match.is_left_side else right_x
        placed.append(_place(match, x, y, dims))

    if side_index[True] != MATCHES_PER_SIDE_ROUND1 or side_index[False] != MATCHES_PER_SIDE_ROUND1:
        raise ValueError(
            f"Round 1 needs {MATCHES_PER_SIDE_ROUND1} matches per side, "
            f"got {side_index[True]} left / {side_index[False]} right"
        )
    return placed


def _horizontal(cid: str, x1: float, x2: float, y: float, settings: LayoutSettings) -> Connector:
    return Connector(id=cid, orientation="horizontal", x1=x1, y1=y, x2=x2, y2=y,
                     stroke_width=settings.stroke_width)


def _vertical(cid: str, x: float, y1: float, y2: float, settings: LayoutSettings) -> Connector:
    return Connector(id=cid, orientation="vertical", x1=x, y1=min(y1, y2), x2=x, y2=max(y1, y2),
                     stroke_width=settings.stroke_width)


def _merge_side_round(
    round_number: int,
    children: List[Match],
    parents: List[Match],
    dims: MatchDimensions,
    settings: LayoutSettings,
) -> Tuple[List[Match], List[Connector]]:
    """Place round_number + 1 from the positioned children of round_number."""
    placed: List[Match] = []
    connectors: List[Connector] = []
    length = settings.connector_length

    for p, parent in enumerate(parents):
        a, b = children[2 * p], children[2 * p + 1]
        if a.is_left_side != b.is_left_side:
            raise ValueError(f"{a.id} and {b.id} feed {parent.id} from different halves")

        a_pos, b_pos = a.position, b.position
        if a.is_left_side:
            edge = a_pos.right
            junction = edge + length
            parent_x = junction
        else:
            edge = a_pos.x
            junction = edge - length
            parent_x = junction - dims.width

        prefix = f"R{round_number}-P{p + 1}"
        connectors.append(_horizontal(f"{prefix}-a", edge, junction, a_pos.center_y, settings))
        connectors.append(_horizontal(f"{prefix}-b", edge, junction, b_pos.center_y, settings))
        connectors.append(_vertical(f"{prefix}-v", junction, a_pos.center_y, b_pos.center_y, settings))

        mid = (a_pos.center_y + b_pos.center_y) / 2
        placed.append(_place(parent, parent_x, mid - dims.height / 2, dims))

    return placed, connectors


def _merge_championship(
    semifinals: List[Match],
    final: Match,
    dims: MatchDimensions,
    settings: LayoutSettings,
) -> Tuple[Match, List[Connector]]:
    left, right = semifinals
    if not left.is_left_side or right.is_left_side:
        raise ValueError("Semifinals must be ordered left half, then right half")

    offset = settings.championship_offset
    mid = (left.position.center_y + right.position.center_y) / 2
    champion_x = left.position.right + settings.championship_gap
    champion_right = champion_x + dims.width
    left_jog = left.position.right + settings.championship_gap / 2
    right_jog = right.position.x - settings.championship_gap / 2
    prefix = f"R{ROUND_COUNT - 1}-P1"

    # Each feed leaves its semifinal at centre height, jogs to its offset line
    # halfway across the gap, then meets the near edge of the final box
    connectors = [
        _horizontal(f"{prefix}-a", left.position.right, left_jog, left.position.center_y, settings),
        _vertical(f"{prefix}-av", left_jog, left.position.center_y, mid - offset, settings),
        _horizontal(f"{prefix}-af", left_jog, champion_x, mid - offset, settings),
        _horizontal(f"{prefix}-b", right.position.x, right_jog, right.position.center_y, settings),
        _vertical(f"{prefix}-bv", right_jog, right.position.center_y, mid + offset, settings),
        _horizontal(f"{prefix}-bf", right_jog, champion_right, mid + offset, settings),
    ]
    return _place(final, champion_x, mid - dims.height / 2, dims), connectors


# -----------------------------------------------------------------------------
# Labels
# -----------------------------------------------------------------------------

def _category_labels(
    tournament: Tournament,
    round1: List[Match],
    bounds: BracketBounds,
    settings: LayoutSettings,
) -> List[CategoryLabel]:
    labels: List[CategoryLabel] = []
    for category in order_by_quadrant(tournament.categories):
        positions = [m.position for m in round1 if m.category_id == category.id]
        if not positions:
            raise ValueError(f"Category {category.id} has no round-1 matches")
        top = min(p.y for p in positions)
        bottom = max(p.y + p.height for p in positions)
        x = settings.label_offset if category.is_left_side else bounds.width - settings.label_offset
        labels.append(CategoryLabel(
            category_id=category.id,
            name=category.name,
            color=category.color,
            position=category.position,
            is_left_side=category.is_left_side,
            x=x,
            center_y=(top + bottom) / 2,
            top=top,
            bottom=bottom,
        ))
    return labels


# -----------------------------------------------------------------------------
# Entry points
# -----------------------------------------------------------------------------

def _check_round_sizes(tournament: Tournament) -> Dict[int, List[Match]]:
    by_round: Dict[int, List[Match]] = {}
    for r in tournament.rounds:
        by_round[r.round_number] = sorted(r.matches, key=lambda m: m.match_number)
    sizes = {n: len(by_round.get(n, [])) for n in EXPECTED_ROUND_SIZES}
    if sizes != EXPECTED_ROUND_SIZES:
        raise ValueError(f"Bracket rounds must have sizes {EXPECTED_ROUND_SIZES}, got {sizes}")
    return by_round


def layout(
    tournament: Tournament,
    metrics: TextMetricsProvider,
    settings: Optional[LayoutSettings] = None,
) -> BracketLayout:
    """Compute positions for all 31 matches plus connectors, labels and bounds."""
    settings = settings or LayoutSettings()
    by_round = _check_round_sizes(tournament)

    font = Font(settings.font_family, settings.font_size)
    text = measure_entrants(tournament, metrics, font)
    dims = match_dimensions(text, settings)
    bounds = canvas_bounds(dims, settings)

    placed_rounds: List[List[Match]] = [_place_round1(by_round[1], dims, bounds, settings)]
    connectors: List[Connector] = []

    for round_number in range(1, ROUND_COUNT - 1):
        placed, segs = _merge_side_round(
            round_number, placed_rounds[-1], by_round[round_number + 1], dims, settings,
        )
        placed_rounds.append(placed)
        connectors.extend(segs)

    final, segs = _merge_championship(placed_rounds[-1], by_round[ROUND_COUNT][0], dims, settings)
    placed_rounds.append([final])
    connectors.extend(segs)

    matches = [m for placed in placed_rounds for m in placed]
    labels = _category_labels(tournament, placed_rounds[0], bounds, settings)

    logger.debug(
        "Laid out %s: box %.1fx%.1f, canvas %.1fx%.1f, %d connectors",
        tournament.title, dims.width, dims.height, bounds.width, bounds.height, len(connectors),
    )
    return BracketLayout(
        matches=matches,
        connectors=connectors,
        bounds=bounds,
        dimensions=dims,
        category_labels=labels,
        text=text,
    )


def apply_layout(tournament: Tournament, bracket_layout: BracketLayout) -> Tournament:
    """Copy of *tournament* whose matches carry the computed positions."""
    positions = {m.id: m.position for m in bracket_layout.matches}
    rounds = [
        r.model_copy(update={
            "matches": [m.model_copy(update={"position": positions.get(m.id, m.position)}) for m in r.matches],
        })
        for r in tournament.rounds
    ]
    return tournament.model_copy(update={"rounds": rounds})
