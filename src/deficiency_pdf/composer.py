"""Page creation, repeated table headers and the final footer pass."""

import io
import logging
from typing import Callable, List, Optional, Tuple

from reportlab.pdfbase.pdfmetrics import getAscent
from reportlab.pdfgen import canvas

from .columns import TableTemplate
from .config import RenderConfig
from .errors import LayoutInvariantError, PageLimitExceededError
from .header import HeaderBlock
from .layout_engine import LayoutCursor
from .measure import TextMeasurer
from .styles import ReportStyle

logger = logging.getLogger(__name__)

PageStamper = Callable[[canvas.Canvas, int, int], None]


class StampingCanvas(canvas.Canvas):
    """
    Canvas that holds finished pages back until save().

    Once the page count is known, save() replays every page and calls the
    stamper with (canvas, page_number, total_pages) before emitting it.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states: List[dict] = []
        self.page_stamper: Optional[PageStamper] = None

    @property
    def buffered_pages(self) -> int:
        return len(self._saved_page_states)

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            if self.page_stamper is not None:
                self.page_stamper(self, self._pageNumber, total)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)


class PageComposer:
    """Owns the canvas and the layout cursor for one render."""

    def __init__(
        self,
        config: RenderConfig,
        style: ReportStyle,
        template: TableTemplate,
        header: HeaderBlock,
    ):
        self.config = config
        self.style = style
        self.template = template
        self.header = header
        self.layout = header.layout
        self.header_measurer = TextMeasurer(style.font_bold, config.padding, 0.0)
        self.buffer = io.BytesIO()
        self.canvas = StampingCanvas(
            self.buffer,
            pagesize=(config.page_width, config.page_height),
            pageCompression=1 if config.page_compression else 0,
            invariant=1 if config.invariant else 0,
        )
        self.canvas.page_stamper = self.stamp_page
        self.canvas.setTitle(header.document.title)
        self._column_widths = tuple(template.column_widths(self.layout.content_width))
        self._cursor: Optional[LayoutCursor] = None

    @property
    def cursor(self) -> LayoutCursor:
        if self._cursor is None:
            raise LayoutInvariantError("start() must be called before layout")
        return self._cursor

    @cursor.setter
    def cursor(self, value: LayoutCursor) -> None:
        if value.page_index != self.cursor.page_index:
            raise LayoutInvariantError("Page changes must go through new_page()")
        self._cursor = value

    @property
    def page_count(self) -> int:
        if self._cursor is None:
            return 0
        return self._cursor.page_index + 1

    @property
    def column_widths(self) -> Tuple[float, ...]:
        return self._column_widths

    def start(self) -> LayoutCursor:
        """Draw the page-one header block and table headers."""
        self.header.draw_box(self.canvas)
        table_top = self.header.draw_title_rows(self.canvas)
        self.draw_table_headers(table_top)
        body_top = table_top - self.layout.table_header_height
        self._cursor = self.layout.first_cursor(body_top)
        return self._cursor

    def new_page(self) -> LayoutCursor:
        """Finish the current page and set up the next one with its headers."""
        current = self.cursor
        max_pages = self.config.max_pages
        if max_pages is not None and current.page_index + 1 >= max_pages:
            raise PageLimitExceededError(max_pages)

        self.canvas.showPage()
        self.header.draw_box(self.canvas)
        self.draw_table_headers(self.layout.continuation_table_top)
        self._cursor = current.on_new_page(self.layout.continuation_body_top)
        logger.debug("Started page %d", self._cursor.page_index + 1)
        return self._cursor

    def draw_table_headers(self, y_top: float) -> None:
        """
        Draw the group band and the column-header row below y_top.

        Drawing happens in a coordinate system translated to the table's
        top-left corner, so every repetition emits the same operators.
        """
        c = self.canvas
        c.saveState()
        c.translate(self.layout.content_start_x, y_top)
        self._draw_group_band(c)
        self._draw_column_headers(c, -self.config.group_header_height)
        c.restoreState()

    def _draw_group_band(self, c: canvas.Canvas) -> None:
        cfg = self.config
        style = self.style
        widths = self.column_widths
        height = cfg.group_header_height
        c.setLineWidth(style.line_width)
        c.setStrokeColor(style.line_color)
        x = 0.0
        for group in self.template.groups:
            width = sum(widths[group.first:group.first + group.count])
            if group.shaded:
                c.setFillColor(style.office_header_bg)
                c.rect(x, -height, width, height, stroke=1, fill=1)
            else:
                c.rect(x, -height, width, height, stroke=1, fill=0)
            c.setFillColor(style.text_color)
            c.setFont(style.font_bold, cfg.group_header_font_size)
            c.drawCentredString(
                x + width / 2,
                -4 - getAscent(style.font_bold, cfg.group_header_font_size),
                group.label,
            )
            x += width

    def _draw_column_headers(self, c: canvas.Canvas, y_top: float) -> None:
        cfg = self.config
        style = self.style
        height = cfg.column_header_height
        widths = self.column_widths

        x = 0.0
        for spec, width in zip(self.template.columns, widths):
            if spec.shaded:
                c.setFillColor(style.office_header_bg)
                c.rect(x, y_top - height, width, height, stroke=1, fill=1)
            else:
                c.rect(x, y_top - height, width, height, stroke=1, fill=0)
            x += width

        c.setFillColor(style.text_color)
        c.setFont(style.font_bold, cfg.font_size)
        ascent = getAscent(style.font_bold, cfg.font_size)
        x = 0.0
        for spec, width in zip(self.template.columns, widths):
            text_width = width - 2 * cfg.padding
            lines = self.header_measurer.wrap(spec.header, text_width, cfg.font_size)
            text_height = len(lines) * cfg.line_height

            c.saveState()
            path = c.beginPath()
            path.rect(x + 1, y_top - height + 1, width - 2, height - 2)
            c.clipPath(path, stroke=0, fill=0)
            text_top = y_top - (height - text_height) / 2
            for i, line in enumerate(lines):
                c.drawCentredString(x + width / 2, text_top - i * cfg.line_height - ascent, line)
            c.restoreState()
            x += width

    def draw_empty_marker(self, text: str = "No entries found.") -> None:
        """Marker shown instead of body rows when the report has no entries."""
        cfg = self.config
        c = self.canvas
        c.setFillColor(self.style.text_color)
        c.setFont(self.style.font_regular, cfg.font_size)
        y = self.cursor.y - 10 - getAscent(self.style.font_regular, cfg.font_size)
        c.drawString(self.layout.content_start_x, y, text)

    def stamp_page(self, c: canvas.Canvas, page_number: int, total_pages: int) -> None:
        """Footer pass: page number in the header box and the footer text."""
        self.header.stamp_page_number(c, page_number, total_pages)
        footer = self.header.document.footer_text
        if footer:
            font_size = 8
            c.setFillColor(self.style.muted_color)
            c.setFont(self.style.font_regular, font_size)
            c.drawString(
                self.layout.content_start_x,
                self.config.footer_offset - getAscent(self.style.font_regular, font_size),
                footer,
            )
            c.setFillColor(self.style.text_color)

    def finish(self) -> bytes:
        """Close the last page, run the footer pass and return the PDF."""
        self.canvas.showPage()
        self.canvas.save()
        return self.buffer.getvalue()
