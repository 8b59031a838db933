"""Page geometry, the layout cursor and row segment planning."""

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Tuple

from .config import RenderConfig
from .errors import LayoutInvariantError
from .measure import check_height


class RowState(Enum):
    """Outcome of the fit decision for one entry."""
    FITS = "fits"    # drawn whole on one page
    SPLIT = "split"  # drawn as two or more page segments


@dataclass(frozen=True)
class PageLayout:
    """
    Fixed page geometry in PDF coordinates (origin bottom-left).

    The header box sits at the top margin on every page. Page one adds the
    title and vessel rows below it; later pages go straight to the table
    headers after a gap.
    """
    page_width: float
    page_height: float
    margin: float
    footer_reserve: float
    header_box_height: float
    continuation_gap: float
    table_header_height: float

    @classmethod
    def from_config(cls, config: RenderConfig) -> "PageLayout":
        return cls(
            page_width=config.page_width,
            page_height=config.page_height,
            margin=config.margin,
            footer_reserve=config.footer_reserve,
            header_box_height=config.header_box_height,
            continuation_gap=config.continuation_gap,
            table_header_height=config.group_header_height + config.column_header_height,
        )

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin

    @property
    def content_start_x(self) -> float:
        return self.margin

    @property
    def content_start_y(self) -> float:
        """Top of content area (PDF coordinates start at bottom)."""
        return self.page_height - self.margin

    @property
    def content_bottom(self) -> float:
        """Lowest y a table row may reach."""
        return self.margin + self.footer_reserve

    @property
    def continuation_table_top(self) -> float:
        """Where the table headers start on pages after the first."""
        return self.content_start_y - self.header_box_height - self.continuation_gap

    @property
    def continuation_body_top(self) -> float:
        """Where the first row starts on pages after the first."""
        return self.continuation_table_top - self.table_header_height

    @property
    def usable_height(self) -> float:
        """Row space on a page after the first."""
        return self.continuation_body_top - self.content_bottom

    def first_cursor(self, body_top: float) -> "LayoutCursor":
        return LayoutCursor(page_index=0, y=body_top, top=body_top, bottom=self.content_bottom)


@dataclass(frozen=True)
class LayoutCursor:
    """Current page and vertical position; every move returns a new cursor."""
    page_index: int
    y: float       # top of the next row
    top: float     # first row position on this page
    bottom: float  # page content boundary

    @property
    def available(self) -> float:
        return self.y - self.bottom

    def advance(self, height: float) -> "LayoutCursor":
        check_height(height)
        return replace(self, y=self.y - height)

    def on_new_page(self, body_top: float) -> "LayoutCursor":
        return LayoutCursor(
            page_index=self.page_index + 1,
            y=body_top,
            top=body_top,
            bottom=self.bottom,
        )


@dataclass(frozen=True)
class SegmentPlan:
    """One page-bounded part of a row."""
    page_index: int
    y_top: float
    height: float
    offset: float  # row height already drawn on earlier segments

    @property
    def y_bottom(self) -> float:
        return self.y_top - self.height


@dataclass(frozen=True)
class RowPlan:
    """Where a row goes and the cursor after it."""
    state: RowState
    forced_break: bool
    segments: Tuple[SegmentPlan, ...]
    cursor: LayoutCursor

    @property
    def height(self) -> float:
        return sum(s.height for s in self.segments)


def segment_height(
    remaining: float,
    available: float,
    first: bool,
    line_height: float,
    padding: float,
) -> float:
    """
    Height of the next segment of a row being split.

    Whatever does not fit is cut at a whole line: the first segment holds
    the top padding plus k lines, later segments hold k lines. At least one
    line is always placed.
    """
    if remaining <= available:
        return remaining
    lead = padding if first else 0.0
    lines = max(1, math.floor((available - lead) / line_height))
    return min(remaining, lines * line_height + lead)


def _whole_row(height: float, cursor: LayoutCursor, forced_break: bool) -> RowPlan:
    segment = SegmentPlan(cursor.page_index, cursor.y, height, 0.0)
    return RowPlan(RowState.FITS, forced_break, (segment,), cursor.advance(height))


def plan_row(
    height: float,
    cursor: LayoutCursor,
    body_top: float,
    line_height: float,
    padding: float,
    min_usable: float,
    head_height: float = 0.0,
) -> RowPlan:
    """
    Decide how a row of the given measured height is placed.

    Args:
        height: Measured row height
        cursor: Position before the row
        body_top: First row position on a fresh page
        line_height: Font size plus line gap
        padding: Cell padding above the first line
        min_usable: Below this much space the row starts on a new page
        head_height: Content drawn whole in the first segment (remarks);
            a split whose first segment is shorter starts on a new page

    Returns:
        RowPlan with one segment (FITS) or several (SPLIT)
    """
    check_height(height)
    forced_break = False
    if cursor.available < min_usable:
        cursor = cursor.on_new_page(body_top)
        forced_break = True

    if height <= cursor.available:
        return _whole_row(height, cursor, forced_break)

    if body_top - cursor.bottom < line_height:
        raise LayoutInvariantError("A fresh page cannot hold a single line of text")

    # the head must not be clipped by the page bottom; retry on a fresh page
    first = segment_height(height, cursor.available, True, line_height, padding)
    if first < head_height and cursor.y < cursor.top:
        cursor = cursor.on_new_page(body_top)
        forced_break = True
        if height <= cursor.available:
            return _whole_row(height, cursor, forced_break)

    segments: List[SegmentPlan] = []
    rendered = 0.0
    while rendered < height:
        remaining = height - rendered
        seg = segment_height(remaining, cursor.available, not segments, line_height, padding)
        segments.append(SegmentPlan(cursor.page_index, cursor.y, seg, rendered))
        rendered = height if seg == remaining else rendered + seg
        cursor = cursor.advance(seg)
        if rendered < height:
            cursor = cursor.on_new_page(body_top)

    return RowPlan(RowState.SPLIT, forced_break, tuple(segments), cursor)
