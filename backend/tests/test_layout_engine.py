"""
Tests for the Layout Engine: match sizing, placement and connector routing.

Uses a fixed-width stub for text metrics (7px per character, 14px high), so
every expected coordinate below can be derived by hand from LayoutSettings.
"""

import pytest

from saintfest.config import LayoutSettings
from saintfest.services.layout_engine import apply_layout, layout, match_dimensions
from saintfest.models.layout import TextMetadata
from saintfest.services.text_metrics import Font, TextMeasurement
from tests.factories import make_tournament


class FixedWidthMetrics:
    def measure(self, text: str, font: Font) -> TextMeasurement:
        return TextMeasurement(width=len(text) * 7.0, height=14.0)


@pytest.fixture
def tournament():
    return make_tournament()


@pytest.fixture
def bracket_layout(tournament):
    return layout(tournament, FixedWidthMetrics())


def _connector(bracket_layout, cid):
    for c in bracket_layout.connectors:
        if c.id == cid:
            return c
    raise AssertionError(f"no connector {cid}")


# -----------------------------------------------------------------------------
# Sizing
# -----------------------------------------------------------------------------

class TestSizing:
    def test_short_names_clamp_to_min_width(self, bracket_layout):
        # "MAR Saint 01" -> 84px + 20 padding < 120
        assert bracket_layout.dimensions.width == 120
        assert bracket_layout.dimensions.row_height == 22
        assert bracket_layout.dimensions.height == 52

    def test_long_names_clamp_to_max_width(self):
        text = TextMetadata(longest_name="x" * 40, max_text_width=280.0, max_text_height=14.0)
        dims = match_dimensions(text, LayoutSettings())
        assert dims.width == 240

    def test_width_follows_text_between_bounds(self):
        text = TextMetadata(longest_name="x" * 20, max_text_width=140.0, max_text_height=30.0)
        dims = match_dimensions(text, LayoutSettings())
        assert dims.width == 160
        assert dims.row_height == 30
        assert dims.height == 68

    def test_text_metadata_reports_longest_name(self, bracket_layout):
        assert bracket_layout.text.max_text_width == 84.0
        assert len(bracket_layout.text.longest_name) == 12

    def test_canvas_bounds(self, bracket_layout):
        # 40 + (4*120 + 3*40) + 80 + 120 + 80 + (4*120 + 3*40) + 40
        assert bracket_layout.bounds.width == 1560
        # 40 + 120 + (2 * (4*52 + 3*50) + 50 + 30) + 40
        assert bracket_layout.bounds.height == 996


# -----------------------------------------------------------------------------
# Placement
# -----------------------------------------------------------------------------

class TestPlacement:
    def test_all_matches_positioned_in_round_order(self, bracket_layout):
        assert len(bracket_layout.matches) == 31
        assert all(m.position is not None for m in bracket_layout.matches)
        assert [m.round_number for m in bracket_layout.matches] == [1] * 16 + [2] * 8 + [3] * 4 + [4] * 2 + [5]

    def test_round1_stacks_flush_to_margins(self, bracket_layout):
        m1 = bracket_layout.match("R1-M1").position
        m2 = bracket_layout.match("R1-M2").position
        m5 = bracket_layout.match("R1-M5").position
        m9 = bracket_layout.match("R1-M9").position
        assert (m1.x, m1.y) == (40, 160)
        assert m2.y == 262
        # second category block starts after the extra category spacing
        assert m5.y == 160 + 358 + 50 + 30
        assert (m9.x, m9.y) == (1400, 160)

    def test_round1_left_right_split(self, bracket_layout):
        for m in bracket_layout.matches[:16]:
            if m.match_number <= 8:
                assert m.is_left_side and m.position.x == 40
            else:
                assert not m.is_left_side and m.position.x == 1400

    def test_parent_centred_on_children(self, bracket_layout):
        for m in bracket_layout.matches:
            if m.round_number in (1, 5):
                continue
            a, b = (bracket_layout.match(cid).position for cid in m.source_match_ids)
            assert m.position.center_y == pytest.approx((a.center_y + b.center_y) / 2)

    def test_side_columns_step_inward(self, bracket_layout):
        left_x = [bracket_layout.match(f"R{r}-M1").position.x for r in range(1, 5)]
        right_x = [bracket_layout.match(f"R{r}-M{n}").position.x for r, n in ((1, 9), (2, 5), (3, 3), (4, 2))]
        assert left_x == [40, 200, 360, 520]
        assert right_x == [1400, 1240, 1080, 920]

    def test_halves_mirror_each_other(self, bracket_layout):
        width = bracket_layout.bounds.width
        for r, (left_n, right_n) in {1: (1, 9), 2: (1, 5), 3: (1, 3), 4: (1, 2)}.items():
            left = bracket_layout.match(f"R{r}-M{left_n}").position
            right = bracket_layout.match(f"R{r}-M{right_n}").position
            assert left.y == right.y
            assert left.x == pytest.approx(width - right.right)

    def test_championship_centred(self, bracket_layout):
        final = bracket_layout.match("R5-M1")
        assert final.is_championship
        assert final.position.x + final.position.width / 2 == bracket_layout.bounds.width / 2
        assert final.position.center_y == 558


# -----------------------------------------------------------------------------
# Connectors
# -----------------------------------------------------------------------------

class TestConnectors:
    def test_segment_counts(self, bracket_layout):
        orientations = [c.orientation for c in bracket_layout.connectors]
        # 14 side merges of three segments, plus three per championship feed
        assert len(orientations) == 48
        assert orientations.count("horizontal") == 32
        assert orientations.count("vertical") == 16

    def test_ids_unique(self, bracket_layout):
        ids = [c.id for c in bracket_layout.connectors]
        assert len(ids) == len(set(ids))

    def test_left_merge_geometry(self, bracket_layout):
        a = _connector(bracket_layout, "R1-P1-a")
        b = _connector(bracket_layout, "R1-P1-b")
        v = _connector(bracket_layout, "R1-P1-v")
        assert (a.x1, a.x2, a.y1) == (160, 200, 186)
        assert (b.x1, b.x2, b.y1) == (160, 200, 288)
        assert (v.x1, v.y1, v.x2, v.y2) == (200, 186, 200, 288)
        parent = bracket_layout.match("R2-M1").position
        assert parent.x == v.x1

    def test_right_merge_geometry(self, bracket_layout):
        # R1-M9/M10 feed R2-M5, the fifth pair of round 1
        a = _connector(bracket_layout, "R1-P5-a")
        v = _connector(bracket_layout, "R1-P5-v")
        assert (a.x1, a.x2) == (1400, 1360)
        parent = bracket_layout.match("R2-M5").position
        assert parent.right == v.x1

    def test_championship_feeds_offset(self, bracket_layout):
        left_feed = _connector(bracket_layout, "R4-P1-af")
        right_feed = _connector(bracket_layout, "R4-P1-bf")
        assert left_feed.y1 == 558 - 15
        assert right_feed.y1 == 558 + 15
        # each feed ends on its own edge of the final box (x 720..840)
        assert (left_feed.x1, left_feed.x2) == (680, 720)
        assert (right_feed.x1, right_feed.x2) == (880, 840)

    def test_championship_jogs_in_the_gap(self, bracket_layout):
        left_stub = _connector(bracket_layout, "R4-P1-a")
        left_jog = _connector(bracket_layout, "R4-P1-av")
        right_stub = _connector(bracket_layout, "R4-P1-b")
        right_jog = _connector(bracket_layout, "R4-P1-bv")
        assert (left_stub.x1, left_stub.x2, left_stub.y1) == (640, 680, 558)
        assert (left_jog.x1, left_jog.y1, left_jog.y2) == (680, 543, 558)
        assert (right_stub.x1, right_stub.x2, right_stub.y1) == (920, 880, 558)
        assert (right_jog.x1, right_jog.y1, right_jog.y2) == (880, 558, 573)

    def test_no_segment_crosses_final_box(self, bracket_layout):
        box = bracket_layout.match("R5-M1").position
        crossing = [
            c.id for c in bracket_layout.connectors
            if min(c.x1, c.x2) < box.right and max(c.x1, c.x2) > box.x
            and min(c.y1, c.y2) < box.y + box.height and max(c.y1, c.y2) > box.y
        ]
        assert crossing == []

    def test_stroke_width_from_settings(self, tournament):
        result = layout(tournament, FixedWidthMetrics(), LayoutSettings(stroke_width=3))
        assert {c.stroke_width for c in result.connectors} == {3}

    def test_championship_offset_configurable(self, tournament):
        result = layout(tournament, FixedWidthMetrics(), LayoutSettings(championship_offset=25))
        assert _connector(result, "R4-P1-af").y1 == 558 - 25
        assert _connector(result, "R4-P1-bf").y1 == 558 + 25


# -----------------------------------------------------------------------------
# Labels
# -----------------------------------------------------------------------------

class TestCategoryLabels:
    def test_one_label_per_category_in_quadrant_order(self, bracket_layout):
        labels = bracket_layout.category_labels
        assert [l.position for l in labels] == ["top-left", "bottom-left", "top-right", "bottom-right"]

    def test_label_spans_category_matches(self, bracket_layout):
        top_left = bracket_layout.category_labels[0]
        assert (top_left.top, top_left.bottom) == (160, 518)
        assert top_left.center_y == 339
        assert top_left.x == 16
        top_right = bracket_layout.category_labels[2]
        assert top_right.x == 1560 - 16
        assert not top_right.is_left_side


# -----------------------------------------------------------------------------
# Entry points
# -----------------------------------------------------------------------------

class TestLayoutEntryPoints:
    def test_deterministic(self, tournament):
        first = layout(tournament, FixedWidthMetrics())
        second = layout(tournament, FixedWidthMetrics())
        assert first.model_dump_json() == second.model_dump_json()

    def test_input_draft_not_mutated(self, tournament):
        layout(tournament, FixedWidthMetrics())
        assert all(m.position is None for m in tournament.all_matches())

    def test_apply_layout_copies_positions(self, tournament, bracket_layout):
        placed = apply_layout(tournament, bracket_layout)
        for m in placed.all_matches():
            assert m.position == bracket_layout.match(m.id).position
        assert all(m.position is None for m in tournament.all_matches())

    def test_missing_round_raises(self, tournament):
        broken = tournament.model_copy(update={"rounds": tournament.rounds[:4]})
        with pytest.raises(ValueError):
            layout(broken, FixedWidthMetrics())

    def test_lopsided_round1_raises(self, tournament):
        rounds = tournament.model_copy(deep=True).rounds
        rounds[0].matches[8] = rounds[0].matches[8].model_copy(update={"is_left_side": True})
        broken = tournament.model_copy(update={"rounds": rounds})
        with pytest.raises(ValueError):
            layout(broken, FixedWidthMetrics())
