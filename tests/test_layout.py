"""Tests for text measurement, column templates and row segment planning."""

import math
from datetime import date

import pytest
from reportlab.pdfbase.pdfmetrics import stringWidth

from deficiency_pdf.columns import (
    SHIP_STAFF_COLUMNS,
    ColumnSpec,
    TableVariant,
    cell_text,
    get_template,
    validate_widths,
)
from deficiency_pdf.errors import ConfigError, LayoutInvariantError
from deficiency_pdf.layout_engine import (
    LayoutCursor,
    PageLayout,
    RowState,
    plan_row,
    segment_height,
)
from deficiency_pdf.measure import TextMeasurer, break_long_line, check_height
from deficiency_pdf.models import Entry


LH = 8.0
PAD = 4.0

# ── TextMeasurer ────────────────────────────────────────────────────


def test_measure_empty_text_is_min_height():
    measurer = TextMeasurer("Helvetica", PAD, 20.0)
    assert measurer.measure("", 100, 7, 1) == 20.0


def test_measure_single_line_floors_at_min_height():
    measurer = TextMeasurer("Helvetica", PAD, 20.0)
    # 1 line * 8 + 2 * 4 = 16 < 20
    assert measurer.measure("abc", 100, 7, 1) == 20.0


def test_measure_counts_explicit_newlines():
    measurer = TextMeasurer("Helvetica", PAD, 20.0)
    assert measurer.measure("a\nb\nc\nd\ne", 100, 7, 1) == 5 * LH + 2 * PAD


def test_measure_wraps_long_text():
    measurer = TextMeasurer("Helvetica", PAD, 20.0)
    text = "word " * 60
    lines = measurer.wrap(text, 80, 7)
    assert len(lines) > 1
    assert all(stringWidth(line, "Helvetica", 7) <= 80 for line in lines)
    assert measurer.measure(text, 80, 7, 1) == len(lines) * LH + 2 * PAD


def test_break_long_line_splits_unbroken_token():
    pieces = break_long_line("x" * 200, 50, "Helvetica", 7)
    assert len(pieces) > 1
    assert "".join(pieces) == "x" * 200
    assert all(stringWidth(p, "Helvetica", 7) <= 50 for p in pieces)


def test_check_height_rejects_invalid():
    for bad in (float("nan"), float("inf"), -1.0):
        with pytest.raises(LayoutInvariantError):
            check_height(bad)
    check_height(0.0)


# ── Column templates ────────────────────────────────────────────────


@pytest.mark.parametrize("variant", list(TableVariant))
def test_column_widths_fill_table(variant):
    template = get_template(variant)
    widths = template.column_widths(761.89)
    assert math.isclose(sum(widths), 761.89)


def test_full_variant_groups():
    template = get_template("ship_staff_and_office")
    groups = template.groups
    assert [(g.label, g.first, g.count, g.shaded) for g in groups] == [
        ("SHIP STAFF", 0, 6, False),
        ("OFFICE", 6, 2, True),
    ]
    assert template.has_remarks()


def test_ship_staff_only_has_no_remarks():
    template = get_template(TableVariant.SHIP_STAFF_ONLY)
    assert not template.has_remarks()
    assert len(template.groups) == 1


def test_validate_widths_rejects_bad_sum():
    with pytest.raises(LayoutInvariantError, match="sum"):
        validate_widths(SHIP_STAFF_COLUMNS)


def test_validate_widths_rejects_non_positive():
    columns = (ColumnSpec("A", 1.2, "serial"), ColumnSpec("B", -0.2, "deficiency"))
    with pytest.raises(LayoutInvariantError):
        validate_widths(columns)


def test_unknown_variant():
    with pytest.raises(ConfigError):
        get_template("captain_only")


def test_cell_text_formats_dates():
    template = get_template("ship_staff_and_office")
    date_spec = [s for s in template.columns if s.key == "completion_date"][0]
    entry = Entry(serial="1", completion_date=date(2025, 1, 9))
    assert cell_text(entry, date_spec, "%m/%d/%Y") == "01/09/2025"
    assert cell_text(Entry(serial="2"), date_spec, "%m/%d/%Y") == ""


# ── Page geometry ───────────────────────────────────────────────────


def test_page_layout_defaults(config):
    layout = PageLayout.from_config(config)
    assert layout.content_bottom == 70.0
    assert layout.table_header_height == 53.0
    assert math.isclose(layout.continuation_body_top, 595.28 - 40 - 70 - 25 - 53)
    assert math.isclose(layout.usable_height, layout.continuation_body_top - 70.0)


# ── segment_height / plan_row ───────────────────────────────────────


def cursor(y, top=300.0, bottom=0.0, page=0):
    return LayoutCursor(page_index=page, y=y, top=top, bottom=bottom)


def test_segment_height_remainder_is_exact():
    assert segment_height(37.5, 100, False, LH, PAD) == 37.5


def test_segment_height_cuts_at_line_boundary():
    # first segment: padding + floor((50 - 4) / 8) lines
    assert segment_height(500, 50, True, LH, PAD) == PAD + 5 * LH
    # later segment: whole lines only
    assert segment_height(500, 50, False, LH, PAD) == 6 * LH


def test_segment_height_places_at_least_one_line():
    assert segment_height(500, 3, False, LH, PAD) == LH


def test_plan_row_fits():
    plan = plan_row(50, cursor(100), 300, LH, PAD, 40)
    assert plan.state == RowState.FITS
    assert not plan.forced_break
    assert len(plan.segments) == 1
    assert plan.segments[0].y_top == 100
    assert plan.cursor.y == 50


def test_plan_row_forces_break_when_space_is_short():
    plan = plan_row(20, cursor(30), 300, LH, PAD, 40)
    assert plan.forced_break
    assert plan.state == RowState.FITS
    assert plan.segments[0].page_index == 1
    assert plan.segments[0].y_top == 300
    assert plan.cursor.page_index == 1


def test_plan_row_split_conserves_height():
    plan = plan_row(500, cursor(100), 300, LH, PAD, 40)
    assert plan.state == RowState.SPLIT
    heights = [s.height for s in plan.segments]
    assert heights == [100, 296, 104]
    assert plan.height == 500
    assert [s.offset for s in plan.segments] == [0, 100, 396]
    assert [s.page_index for s in plan.segments] == [0, 1, 2]
    assert plan.cursor.page_index == 2
    assert plan.cursor.y == 300 - 104


def test_plan_row_split_points_are_line_boundaries():
    plan = plan_row(808, cursor(273.28), 337.28, LH, PAD, 40)
    boundaries = [s.offset + s.height for s in plan.segments[:-1]]
    assert boundaries
    for b in boundaries:
        assert math.isclose((b - PAD) % LH, 0.0, abs_tol=1e-9)
    assert math.isclose(sum(s.height for s in plan.segments), 808)


def test_plan_row_segments_fill_from_cursor():
    plan = plan_row(808, cursor(273.28), 337.28, LH, PAD, 40)
    first, second = plan.segments[0], plan.segments[1]
    assert first.y_top == 273.28
    assert second.y_top == 337.28
    assert first.y_bottom >= 0


def test_plan_row_moves_short_head_to_fresh_page():
    # first segment on this page would be 4 + 7 lines = 60, less than the head
    plan = plan_row(500, cursor(60), 300, LH, PAD, 40, head_height=93)
    assert plan.state == RowState.SPLIT
    assert plan.forced_break
    assert [s.page_index for s in plan.segments] == [1, 2]
    assert plan.segments[0].y_top == 300
    assert [s.height for s in plan.segments] == [300, 200]


def test_plan_row_keeps_split_when_head_fits():
    plan = plan_row(500, cursor(100), 300, LH, PAD, 40, head_height=93)
    assert not plan.forced_break
    assert [s.height for s in plan.segments] == [100, 296, 104]


def test_plan_row_does_not_move_from_page_top():
    # a fresh page cannot do better, so the row splits where it is
    plan = plan_row(500, cursor(300), 300, LH, PAD, 40, head_height=400)
    assert not plan.forced_break
    assert [s.page_index for s in plan.segments] == [0, 1]
    assert [s.height for s in plan.segments] == [300, 200]


def test_plan_row_rejects_page_without_room_for_a_line():
    with pytest.raises(LayoutInvariantError):
        plan_row(100, cursor(5, top=5), 5, LH, PAD, 0)


def test_cursor_advance_rejects_negative():
    with pytest.raises(LayoutInvariantError):
        cursor(100).advance(-1)
