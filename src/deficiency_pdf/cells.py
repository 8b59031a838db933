"""Drawing of text cells and the composite remarks cell."""

import io
import logging
from enum import Enum
from typing import List, Optional

from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import getAscent, stringWidth
from reportlab.pdfgen import canvas

from .columns import ColumnSpec
from .config import RenderConfig
from .measure import TextMeasurer
from .models import Entry
from .signatures import SignatureCache
from .styles import BadgeColors, ReportStyle, get_role_badge, get_status_badge

logger = logging.getLogger(__name__)

BADGE_PAD_H = 8
BADGE_PAD_V = 4
NAME_DATE_GAP = 4
EPSILON = 1e-6


class RemarksMode(Enum):
    """What the remarks cell of a row ended up showing."""
    SIGNATURE = "signature"
    FALLBACK = "fallback"


def load_image(data: bytes) -> Optional[ImageReader]:
    """Decode image bytes, or None when they cannot be used."""
    try:
        reader = ImageReader(io.BytesIO(data))
        width, height = reader.getSize()
    except Exception as exc:
        logger.warning("Signature image could not be decoded: %s", exc)
        return None
    if width <= 0 or height <= 0:
        logger.warning("Signature image has no pixels")
        return None
    return reader


class CellRenderer:
    """Draws cell content inside the rectangles the row layout hands it."""

    def __init__(
        self,
        c: canvas.Canvas,
        config: RenderConfig,
        style: ReportStyle,
        measurer: TextMeasurer,
        signatures: SignatureCache,
    ):
        self.c = c
        self.config = config
        self.style = style
        self.measurer = measurer
        self.signatures = signatures

    # ── plain text ────────────────────────────────────────────────

    def text_width(self, cell_width: float) -> float:
        return cell_width - 2 * self.config.padding

    def draw_lines(
        self,
        lines: List[str],
        x: float,
        width: float,
        text_top: float,
        alignment: str = "left",
        first: int = 0,
        last: Optional[int] = None,
    ) -> None:
        """Draw lines[first:last] with line i's top at text_top - i * line_height."""
        cfg = self.config
        font = self.style.font_regular
        ascent = getAscent(font, cfg.font_size)
        self.c.setFont(font, cfg.font_size)
        self.c.setFillColor(self.style.text_color)
        end = len(lines) if last is None else last
        for i in range(first, end):
            y = text_top - i * cfg.line_height - ascent
            if alignment == "center":
                self.c.drawCentredString(x + width / 2, y, lines[i])
            else:
                self.c.drawString(x, y, lines[i])

    def draw_text_cell(
        self,
        spec: ColumnSpec,
        text: str,
        x: float,
        cell_width: float,
        y_top: float,
        height: float,
        offset: float = 0.0,
        first_segment: bool = True,
    ) -> None:
        """
        Draw a text cell, or the part of it that falls in one segment.

        The segment covers [offset, offset + height] of the full row. Lines
        belonging to other segments are skipped and the rest is clipped to
        the segment rectangle.
        """
        if not text:
            return
        cfg = self.config
        width = self.text_width(cell_width)
        lines = self.measurer.wrap(text, width, cfg.font_size)
        text_height = len(lines) * cfg.line_height
        centered = spec.alignment == "center"

        self.c.saveState()
        path = self.c.beginPath()
        path.rect(x, y_top - height, cell_width, height)
        self.c.clipPath(path, stroke=0, fill=0)

        if centered and text_height <= height - 2 * cfg.padding:
            # short content (serial, dates) sits in the middle of the first segment
            if first_segment:
                text_top = y_top - max(cfg.padding, (height - text_height) / 2)
                self.draw_lines(lines, x + cfg.padding, width, text_top, "center")
        else:
            row_top = y_top + offset
            text_top = row_top - cfg.padding
            first = 0
            last = len(lines)
            for i in range(len(lines)):
                line_start = cfg.padding + i * cfg.line_height
                if line_start < offset - EPSILON:
                    first = i + 1
                elif line_start + cfg.line_height > offset + height + EPSILON:
                    last = i
                    break
            self.draw_lines(lines, x + cfg.padding, width, text_top, spec.alignment, first, last)

        self.c.restoreState()

    # ── remarks ───────────────────────────────────────────────────

    @property
    def badge_height(self) -> float:
        """Badge box height; a lone status badge fits a minimum-height row."""
        cfg = self.config
        return min(cfg.badge_font_size + 2 * BADGE_PAD_V, cfg.min_row_height - 2 * cfg.padding)

    def has_signature(self, entry: Entry) -> bool:
        return entry.signer is not None and entry.signer.id in self.signatures

    def format_sign_date(self, entry: Entry) -> str:
        if entry.sign_date is None:
            return ""
        return entry.sign_date.strftime(self.config.date_format)

    def signature_group_height(self, entry: Entry) -> float:
        cfg = self.config
        height = self.badge_height + cfg.element_gap + cfg.signature_height + cfg.element_gap
        if entry.signer and entry.signer.name:
            height += self.badge_height + NAME_DATE_GAP
        if entry.sign_date:
            height += cfg.badge_font_size
        return height

    def fallback_group_height(self, entry: Entry) -> float:
        cfg = self.config
        height = self.badge_height
        if entry.signer and entry.signer.name:
            height += cfg.element_gap + self.badge_height
        if entry.sign_date:
            height += NAME_DATE_GAP + cfg.badge_font_size
        return height

    def remarks_height(self, entry: Entry) -> float:
        """
        Measured height of the remarks cell.

        The composite is bounded: with a cached signature it holds the
        status badge, the image, the signer badge and the date; otherwise
        the same without the image.
        """
        if self.has_signature(entry):
            group = self.signature_group_height(entry)
        else:
            group = self.fallback_group_height(entry)
        return max(self.config.min_row_height, group + 2 * self.config.padding)

    def draw_badge(self, text: str, center_x: float, y_top: float, colors: BadgeColors) -> float:
        """Draw a rounded badge whose top edge is at y_top; returns its height."""
        font_size = self.config.badge_font_size
        font = self.style.font_bold
        width = stringWidth(text, font, font_size) + 2 * BADGE_PAD_H
        height = self.badge_height
        x = center_x - width / 2

        self.c.saveState()
        self.c.setLineWidth(self.style.badge_line_width)
        self.c.setFillColor(colors.bg)
        self.c.setStrokeColor(colors.border)
        self.c.roundRect(x, y_top - height, width, height, self.style.badge_radius, stroke=1, fill=1)
        self.c.setFillColor(colors.text)
        self.c.setFont(font, font_size)
        text_y = y_top - height / 2 - (getAscent(font, font_size) - font_size * 0.25) / 2
        self.c.drawCentredString(center_x, text_y, text)
        self.c.restoreState()
        return height

    def draw_sign_date(self, text: str, x: float, cell_width: float, y_top: float) -> None:
        font_size = self.config.badge_font_size
        font = self.style.font_regular
        self.c.setFillColor(self.style.muted_color)
        self.c.setFont(font, font_size)
        self.c.drawCentredString(x + cell_width / 2, y_top - getAscent(font, font_size), text)
        self.c.setFillColor(self.style.text_color)

    def _draw_signature(
        self, entry: Entry, image: ImageReader, x: float, y_top: float, cell_width: float, height: float
    ) -> bool:
        cfg = self.config
        center_x = x + cell_width / 2
        group = self.signature_group_height(entry)
        y = y_top - max(cfg.padding, (height - group) / 2)

        sig_w = min(cell_width - 2 * cfg.padding, cfg.signature_max_width)
        sig_top = y - self.badge_height - cfg.element_gap
        try:
            self.c.drawImage(
                image, x + (cell_width - sig_w) / 2, sig_top - cfg.signature_height,
                width=sig_w, height=cfg.signature_height,
                preserveAspectRatio=True, anchor="c", mask="auto",
            )
        except Exception as exc:
            logger.warning("Failed to render signature image: %s", exc)
            return False

        self.draw_badge(entry.status.label, center_x, y, get_status_badge(entry.status))
        y = sig_top - cfg.signature_height - cfg.element_gap
        signer = entry.signer
        if signer and signer.name:
            self.draw_badge(signer.name, center_x, y, get_role_badge(signer.role))
            y -= self.badge_height + NAME_DATE_GAP
        sign_date = self.format_sign_date(entry)
        if sign_date:
            self.draw_sign_date(sign_date, x, cell_width, y)
        return True

    def _draw_fallback(self, entry: Entry, x: float, y_top: float, cell_width: float, height: float) -> None:
        cfg = self.config
        center_x = x + cell_width / 2
        group = self.fallback_group_height(entry)
        y = y_top - max(cfg.padding, (height - group) / 2)

        self.draw_badge(entry.status.label, center_x, y, get_status_badge(entry.status))
        y -= self.badge_height
        signer = entry.signer
        if signer and signer.name:
            y -= cfg.element_gap
            self.draw_badge(signer.name, center_x, y, get_role_badge(signer.role))
            y -= self.badge_height
        sign_date = self.format_sign_date(entry)
        if sign_date:
            y -= NAME_DATE_GAP
            self.draw_sign_date(sign_date, x, cell_width, y)

    def draw_remarks_cell(
        self, entry: Entry, x: float, y_top: float, cell_width: float, height: float
    ) -> RemarksMode:
        """
        Draw status, signature and signer details centred in the cell.

        Falls back to the text-only layout when the signer has no cached
        image or the image cannot be embedded. Never raises for image
        problems.
        """
        self.c.saveState()
        path = self.c.beginPath()
        path.rect(x + 1, y_top - height + 1, cell_width - 2, height - 2)
        self.c.clipPath(path, stroke=0, fill=0)

        mode = RemarksMode.FALLBACK
        image = None
        if self.has_signature(entry):
            image = load_image(self.signatures[entry.signer.id])
        if image is not None and self._draw_signature(entry, image, x, y_top, cell_width, height):
            mode = RemarksMode.SIGNATURE
        else:
            self._draw_fallback(entry, x, y_top, cell_width, height)

        self.c.restoreState()
        return mode
