"""Row layout: measure an entry, then draw it whole or split across pages."""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .cells import CellRenderer, RemarksMode
from .columns import ColumnKind, TableTemplate, cell_text
from .composer import PageComposer
from .config import RenderConfig
from .errors import LayoutInvariantError
from .layout_engine import RowPlan, RowState, SegmentPlan, plan_row
from .measure import TextMeasurer, check_height
from .models import Entry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RowMeasurement:
    """Per-column heights of one entry and the resulting row height."""
    column_heights: Tuple[float, ...]
    height: float
    remarks_height: float = 0.0  # drawn whole on the first segment


@dataclass
class RenderedSegment:
    """Metadata for one drawn segment of a row."""
    page_index: int
    bbox: Tuple[float, float, float, float]  # x0, y0, x1, y1
    offset: float
    height: float


@dataclass
class RenderedRow:
    """Metadata for a rendered entry."""
    row_index: int
    serial: str
    measured_height: float
    state: RowState
    forced_break: bool
    remarks_mode: Optional[RemarksMode]
    segments: List[RenderedSegment]

    @property
    def pages(self) -> List[int]:
        return sorted({s.page_index for s in self.segments})


class RowLayoutEngine:
    """
    Lays out entries one after another on the composer's pages.

    Measure -> Fits -> DrawWhole, or Measure -> Overflows -> Split ->
    DrawSegment* -> Done. The cursor is read from the composer and written
    back after each segment; it is never kept between entries.
    """

    def __init__(
        self,
        composer: PageComposer,
        cells: CellRenderer,
        measurer: TextMeasurer,
        config: RenderConfig,
        template: TableTemplate,
    ):
        self.composer = composer
        self.cells = cells
        self.measurer = measurer
        self.config = config
        self.template = template

    @property
    def widths(self) -> Tuple[float, ...]:
        return self.composer.column_widths

    def measure(self, entry: Entry) -> RowMeasurement:
        """Height of every column and of the row as a whole."""
        cfg = self.config
        heights = []
        remarks_height = 0.0
        for spec, width in zip(self.template.columns, self.widths):
            if spec.kind == ColumnKind.REMARKS:
                height = remarks_height = self.cells.remarks_height(entry)
            else:
                text = cell_text(entry, spec, cfg.date_format)
                height = self.measurer.measure(
                    text, width - 2 * cfg.padding, cfg.font_size, cfg.line_gap
                )
            heights.append(height)

        row_height = max([cfg.min_row_height] + heights)
        check_height(row_height)
        return RowMeasurement(tuple(heights), row_height, remarks_height)

    def plan(self, measurement: RowMeasurement) -> RowPlan:
        cfg = self.config
        return plan_row(
            measurement.height,
            self.composer.cursor,
            self.composer.layout.continuation_body_top,
            cfg.line_height,
            cfg.padding,
            2 * cfg.min_row_height,
            head_height=measurement.remarks_height,
        )

    def render(self, entry: Entry, row_index: int) -> RenderedRow:
        """Measure, place and draw one entry."""
        measurement = self.measure(entry)
        plan = self.plan(measurement)
        if plan.state == RowState.SPLIT:
            logger.debug(
                "Row %s (%.1fpt) split into %d segments",
                entry.serial, measurement.height, len(plan.segments),
            )

        remarks_mode = None
        drawn: List[RenderedSegment] = []
        for number, segment in enumerate(plan.segments):
            self._move_to(segment)
            mode = self._draw_segment(entry, segment, first=number == 0)
            if mode is not None:
                remarks_mode = mode
            drawn.append(self._segment_meta(segment))
            self.composer.cursor = self.composer.cursor.advance(segment.height)

        if self.composer.cursor != plan.cursor:
            raise LayoutInvariantError("Row layout drifted from its plan")

        rendered = sum(s.height for s in plan.segments)
        if not math.isclose(rendered, measurement.height, abs_tol=1e-6):
            raise LayoutInvariantError(
                f"Row {entry.serial} drew {rendered}pt of {measurement.height}pt"
            )

        return RenderedRow(
            row_index=row_index,
            serial=entry.serial,
            measured_height=measurement.height,
            state=plan.state,
            forced_break=plan.forced_break,
            remarks_mode=remarks_mode,
            segments=drawn,
        )

    def _move_to(self, segment: SegmentPlan) -> None:
        """Request pages from the composer until the segment's page is current."""
        while self.composer.cursor.page_index < segment.page_index:
            self.composer.new_page()
        if self.composer.cursor.y != segment.y_top:
            raise LayoutInvariantError("Segment does not start at the cursor")

    def _segment_meta(self, segment: SegmentPlan) -> RenderedSegment:
        x0 = self.composer.layout.content_start_x
        return RenderedSegment(
            page_index=segment.page_index,
            bbox=(x0, segment.y_bottom, x0 + sum(self.widths), segment.y_top),
            offset=segment.offset,
            height=segment.height,
        )

    def _draw_segment(self, entry: Entry, segment: SegmentPlan, first: bool) -> Optional[RemarksMode]:
        """Borders for every column, then the content that belongs here."""
        c = self.composer.canvas
        style = self.composer.style
        x0 = self.composer.layout.content_start_x

        c.setLineWidth(style.line_width)
        c.setStrokeColor(style.line_color)
        x = x0
        for width in self.widths:
            c.rect(x, segment.y_bottom, width, segment.height, stroke=1, fill=0)
            x += width

        remarks_mode = None
        x = x0
        for spec, width in zip(self.template.columns, self.widths):
            if spec.kind == ColumnKind.REMARKS:
                # atomic: drawn once, on the first segment only
                if first:
                    remarks_mode = self.cells.draw_remarks_cell(
                        entry, x, segment.y_top, width, segment.height
                    )
            else:
                self.cells.draw_text_cell(
                    spec,
                    cell_text(entry, spec, self.config.date_format),
                    x,
                    width,
                    segment.y_top,
                    segment.height,
                    offset=segment.offset,
                    first_segment=first,
                )
            x += width
        return remarks_mode
