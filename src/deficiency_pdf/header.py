"""The fixed header block: header box, title and vessel row."""

import logging
from typing import Optional

from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import getAscent, stringWidth
from reportlab.pdfgen import canvas

from .config import RenderConfig
from .layout_engine import PageLayout
from .models import ReportDocument
from .styles import ReportStyle

logger = logging.getLogger(__name__)

LEFT_SHARE = 0.55     # company block
FILE_ROW_OFFSET = 42  # from the top of the header box
LABEL_SIZE = 8
COMPANY_SIZE = 11
FORM_MANUAL_SIZE = 9
TITLE_SIZE = 12
VESSEL_ROW_SIZE = 9
PAGE_LABEL = "PAGE "


def baseline(font_name: str, font_size: float, text_top: float) -> float:
    """Baseline for text whose top edge is at text_top."""
    return text_top - getAscent(font_name, font_size)


def draw_label_value(
    c: canvas.Canvas,
    style: ReportStyle,
    x: float,
    y: float,
    label: str,
    value: str,
    font_size: float = LABEL_SIZE,
    underline: bool = False,
) -> float:
    """Draw a bold label followed by a regular value; returns the end x."""
    c.setFont(style.font_bold, font_size)
    c.drawString(x, y, label)
    x += stringWidth(label, style.font_bold, font_size)
    c.setFont(style.font_regular, font_size)
    c.drawString(x, y, value)
    value_width = stringWidth(value, style.font_regular, font_size)
    if underline:
        c.setLineWidth(0.5)
        c.line(x, y - 1.5, x + value_width, y - 1.5)
        c.setLineWidth(style.line_width)
    return x + value_width


def format_inspection_date(document: ReportDocument, config: RenderConfig) -> str:
    if document.inspection_date is None:
        return "-"
    return document.inspection_date.strftime(config.date_format)


class HeaderBlock:
    """Draws the header box on every page and the title rows on page one."""

    def __init__(
        self,
        layout: PageLayout,
        config: RenderConfig,
        style: ReportStyle,
        document: ReportDocument,
        logo: Optional[ImageReader] = None,
    ):
        self.layout = layout
        self.config = config
        self.style = style
        self.document = document
        self.logo = logo

    @property
    def left_width(self) -> float:
        return self.layout.content_width * LEFT_SHARE

    @property
    def right_cell_width(self) -> float:
        return self.layout.content_width * (1 - LEFT_SHARE) / 2

    def _top_row_baseline(self) -> float:
        top = self.layout.content_start_y
        text_top = top - (FILE_ROW_OFFSET - 10) / 2 - 2
        return baseline(self.style.font_bold, LABEL_SIZE, text_top)

    def _page_field_x(self) -> float:
        return self.layout.content_start_x + self.left_width + self.right_cell_width + 5

    def _draw_logo(self, c: canvas.Canvas, x: float, top: float) -> float:
        """Draw the logo if present; returns the horizontal space it takes."""
        if self.logo is None:
            return 0.0
        size = self.config.logo_size
        try:
            c.drawImage(
                self.logo, x + 5, top - 5 - size, width=size, height=size,
                preserveAspectRatio=True, anchor="c", mask="auto",
            )
        except Exception as exc:
            logger.warning("Failed to draw logo: %s", exc)
            self.logo = None
            return 0.0
        return size + 5

    def draw_box(self, c: canvas.Canvas) -> None:
        """Company block, file numbers and the revision/page/form/date grid."""
        doc = self.document
        style = self.style
        x = self.layout.content_start_x
        top = self.layout.content_start_y
        width = self.layout.content_width
        height = self.config.header_box_height
        bottom = top - height
        left_w = self.left_width

        c.setStrokeColor(style.line_color)
        c.setFillColor(style.text_color)
        c.setLineWidth(style.line_width)
        c.rect(x, bottom, width, height, stroke=1, fill=0)
        c.line(x + left_w, top, x + left_w, bottom)

        # Left: logo, company name, form manual
        logo_w = self._draw_logo(c, x, top)
        name_x = x + logo_w + 10
        name_w = left_w - logo_w - 20
        c.setFont(style.font_bold, COMPANY_SIZE)
        c.drawCentredString(
            name_x + name_w / 2, baseline(style.font_bold, COMPANY_SIZE, top - 10),
            doc.company_name or "SHIPPING COMPANY",
        )
        c.setFont(style.font_regular, FORM_MANUAL_SIZE)
        c.drawCentredString(
            name_x + name_w / 2, baseline(style.font_regular, FORM_MANUAL_SIZE, top - 25),
            "FORM MANUAL",
        )

        file_row_y = top - FILE_ROW_OFFSET
        mid_x = x + left_w / 2
        c.line(x, file_row_y, x + left_w, file_row_y)
        c.line(mid_x, file_row_y, mid_x, bottom)
        file_baseline = baseline(style.font_bold, LABEL_SIZE, file_row_y - 8)
        draw_label_value(c, style, x + 5, file_baseline, "SHIP'S FILE NO: ", doc.ship_file_no or "-")
        draw_label_value(c, style, mid_x + 5, file_baseline, "OFFICE FILE NO: ", doc.office_file_no or "-")

        # Right: 2x2 grid
        right_x = x + left_w
        cell_w = self.right_cell_width
        c.line(right_x + cell_w, top, right_x + cell_w, bottom)
        c.line(right_x, file_row_y, x + width, file_row_y)

        top_baseline = self._top_row_baseline()
        draw_label_value(c, style, right_x + 5, top_baseline, "REVISION# ", doc.revision_no or "1")
        c.setFont(style.font_bold, LABEL_SIZE)
        c.drawString(self._page_field_x(), top_baseline, PAGE_LABEL)  # number stamped later

        bottom_cell_h = file_row_y - bottom
        bottom_baseline = baseline(
            style.font_bold, LABEL_SIZE, file_row_y - (bottom_cell_h - 10) / 2 - 2
        )
        draw_label_value(c, style, right_x + 5, bottom_baseline, "FORM NO: ", doc.form_no or "-")
        draw_label_value(
            c, style, right_x + cell_w + 5, bottom_baseline, "DATE ",
            format_inspection_date(doc, self.config),
        )

    def draw_title_rows(self, c: canvas.Canvas) -> float:
        """
        Draw the title and the vessel / inspection type / date row.

        Returns:
            y where the table starts on page one
        """
        doc = self.document
        style = self.style
        x = self.layout.content_start_x
        width = self.layout.content_width
        y = self.layout.content_start_y - self.config.header_box_height - self.config.header_gap

        title = doc.title or "THIRD PARTY DEFICIENCY SUMMARY"
        c.setFillColor(style.text_color)
        c.setFont(style.font_bold, TITLE_SIZE)
        title_baseline = baseline(style.font_bold, TITLE_SIZE, y)
        c.drawCentredString(x + width / 2, title_baseline, title)
        title_w = stringWidth(title, style.font_bold, TITLE_SIZE)
        c.setLineWidth(0.75)
        c.line(x + (width - title_w) / 2, title_baseline - 2, x + (width + title_w) / 2, title_baseline - 2)
        c.setLineWidth(style.line_width)
        y -= self.config.title_height

        row_baseline = baseline(style.font_bold, VESSEL_ROW_SIZE, y)
        draw_label_value(
            c, style, x, row_baseline, "VESSEL: ", doc.vessel_name or "-",
            font_size=VESSEL_ROW_SIZE, underline=True,
        )

        third = width / 3
        type_label = "INSPECTION TYPE: "
        type_value = doc.inspected_by or "-"
        type_w = (stringWidth(type_label, style.font_bold, VESSEL_ROW_SIZE)
                  + stringWidth(type_value, style.font_regular, VESSEL_ROW_SIZE))
        draw_label_value(
            c, style, x + third + (third - type_w) / 2, row_baseline, type_label, type_value,
            font_size=VESSEL_ROW_SIZE, underline=True,
        )

        date_label = "DATE: "
        date_value = format_inspection_date(doc, self.config)
        date_w = (stringWidth(date_label, style.font_bold, VESSEL_ROW_SIZE)
                  + stringWidth(date_value, style.font_regular, VESSEL_ROW_SIZE))
        draw_label_value(
            c, style, x + width - date_w, row_baseline, date_label, date_value,
            font_size=VESSEL_ROW_SIZE, underline=True,
        )

        return y - self.config.vessel_row_height

    def stamp_page_number(self, c: canvas.Canvas, page_number: int, total_pages: int) -> None:
        """Fill in "PAGE n/N" once the page count is known."""
        x = self._page_field_x() + stringWidth(PAGE_LABEL, self.style.font_bold, LABEL_SIZE)
        c.setFillColor(self.style.text_color)
        c.setFont(self.style.font_regular, LABEL_SIZE)
        c.drawString(x, self._top_row_baseline(), f"{page_number}/{total_pages}")
