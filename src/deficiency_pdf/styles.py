"""Fonts and colours used by the report."""

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from reportlab.lib.colors import Color, HexColor, black
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont

from .models import InspectionStatus

logger = logging.getLogger(__name__)

ROBOTO_REGULAR = "Roboto-Regular.ttf"
ROBOTO_BOLD = "Roboto-Bold.ttf"
ADMIN_ROLES = ("ADMIN", "SUPER_ADMIN")


@dataclass(frozen=True)
class BadgeColors:
    """Fill, border and text colour of a rounded badge."""
    bg: Color
    border: Color
    text: Color


@dataclass(frozen=True)
class ReportStyle:
    """Visual style of the deficiency report."""
    font_regular: str = "Helvetica"
    font_bold: str = "Helvetica-Bold"
    line_color: Color = black
    line_width: float = 1.0
    text_color: Color = black
    muted_color: Color = HexColor("#666666")  # footer and sign dates
    office_header_bg: Color = HexColor("#F3E8FF")  # light purple
    badge_line_width: float = 0.5
    badge_radius: float = 4.0


STATUS_BADGES: Dict[InspectionStatus, BadgeColors] = {
    InspectionStatus.CLOSED_SATISFACTORILY: BadgeColors(
        bg=HexColor("#f6ffed"), border=HexColor("#b7eb8f"), text=HexColor("#389e0d"),
    ),
    InspectionStatus.FURTHER_ACTION_NEEDED: BadgeColors(
        bg=HexColor("#fffbe6"), border=HexColor("#ffe58f"), text=HexColor("#d48806"),
    ),
    InspectionStatus.OPEN: BadgeColors(
        bg=HexColor("#fff1f0"), border=HexColor("#ffa39e"), text=HexColor("#cf1322"),
    ),
}

ADMIN_BADGE = BadgeColors(
    bg=HexColor("#f9f0ff"), border=HexColor("#d3adf7"), text=HexColor("#722ed1"),
)
USER_BADGE = BadgeColors(
    bg=HexColor("#e6f7ff"), border=HexColor("#91d5ff"), text=HexColor("#1890ff"),
)


def get_status_badge(status: InspectionStatus) -> BadgeColors:
    """Badge colours for an entry status."""
    return STATUS_BADGES.get(status, STATUS_BADGES[InspectionStatus.OPEN])


def get_role_badge(role: Optional[str]) -> BadgeColors:
    """Badge colours for a signer role (admins purple, everyone else blue)."""
    if role in ADMIN_ROLES:
        return ADMIN_BADGE
    return USER_BADGE


def find_font_files(font_dirs: Iterable[Path]) -> Optional[Tuple[Path, Path]]:
    """Return the first directory holding both Roboto files."""
    for font_dir in font_dirs:
        regular = Path(font_dir) / ROBOTO_REGULAR
        bold = Path(font_dir) / ROBOTO_BOLD
        if regular.exists() and bold.exists():
            return regular, bold
    return None


def register_fonts(font_dirs: Iterable[Path], base: Optional[ReportStyle] = None) -> ReportStyle:
    """
    Register Roboto if it can be found, otherwise keep Helvetica.

    Font problems never abort a render: the built-in typeface is always
    available.
    """
    style = base or ReportStyle()
    files = find_font_files(font_dirs)
    if files is None:
        logger.debug("Roboto not found, using %s", style.font_regular)
        return style

    regular, bold = files
    try:
        pdfmetrics.registerFont(TTFont("Roboto", str(regular)))
        pdfmetrics.registerFont(TTFont("Roboto-Bold", str(bold)))
    except (TTFError, OSError) as exc:
        logger.warning("Failed to register Roboto from %s: %s", regular.parent, exc)
        return style

    return replace(style, font_regular="Roboto", font_bold="Roboto-Bold")
