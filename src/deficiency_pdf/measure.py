"""Text wrapping and height measurement."""

import math
from typing import List

from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth

from .errors import LayoutInvariantError


def break_long_line(line: str, max_width: float, font_name: str, font_size: float) -> List[str]:
    """Hard-break a line that is wider than max_width (e.g. a long token)."""
    if stringWidth(line, font_name, font_size) <= max_width:
        return [line]

    pieces: List[str] = []
    current = ""
    for ch in line:
        if current and stringWidth(current + ch, font_name, font_size) > max_width:
            pieces.append(current)
            current = ch
        else:
            current += ch
    if current:
        pieces.append(current)
    return pieces


class TextMeasurer:
    """
    Computes wrapped line counts and cell heights for one font.

    Line height is font_size + line_gap. A cell is its lines plus padding
    above and below, and never shorter than min_row_height.
    """

    def __init__(self, font_name: str, padding: float, min_row_height: float):
        self.font_name = font_name
        self.padding = padding
        self.min_row_height = min_row_height

    def wrap(self, text: str, width: float, font_size: float) -> List[str]:
        """Split text into lines that fit width. Empty text has no lines."""
        if not text:
            return []
        lines: List[str] = []
        for line in simpleSplit(text, self.font_name, font_size, width):
            lines.extend(break_long_line(line, width, self.font_name, font_size))
        return lines

    def line_count(self, text: str, width: float, font_size: float) -> int:
        return len(self.wrap(text, width, font_size))

    def text_height(self, text: str, width: float, font_size: float, line_gap: float) -> float:
        """Height of the wrapped lines alone, without padding."""
        return self.line_count(text, width, font_size) * (font_size + line_gap)

    def measure(self, text: str, width: float, font_size: float, line_gap: float) -> float:
        """
        Cell height needed for text wrapped at width.

        Args:
            text: Cell content; may contain newlines
            width: Maximum line width (cell width minus horizontal padding)
            font_size: Font size in points
            line_gap: Extra space between lines

        Returns:
            Height in points, at least min_row_height
        """
        if not text:
            return self.min_row_height

        height = self.text_height(text, width, font_size, line_gap) + 2 * self.padding
        check_height(height)
        return max(self.min_row_height, height)


def check_height(height: float) -> None:
    """Measured heights must be finite and non-negative."""
    if math.isnan(height) or math.isinf(height) or height < 0:
        raise LayoutInvariantError(f"Invalid measured height: {height}")
