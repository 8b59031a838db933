"""Column specifications for the deficiency table variants."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from .errors import ConfigError, LayoutInvariantError
from .models import Entry


class ColumnKind(Enum):
    """How a column is measured and drawn."""
    TEXT = "text"
    DATE = "date"
    REMARKS = "remarks"  # status + signature composite


class TableVariant(Enum):
    """Which column groups a report shows."""
    SHIP_STAFF_ONLY = "ship_staff_only"
    SHIP_STAFF_AND_OFFICE = "ship_staff_and_office"


SHIP_STAFF = "SHIP STAFF"
OFFICE = "OFFICE"

# Groups drawn with the shaded background
SHADED_GROUPS = (OFFICE,)


@dataclass(frozen=True)
class ColumnSpec:
    """Specification for a table column."""
    header: str
    width_ratio: float  # fraction of the table width
    key: str            # Entry attribute
    kind: ColumnKind = ColumnKind.TEXT
    alignment: str = "left"  # "left" or "center"
    group: str = SHIP_STAFF

    @property
    def shaded(self) -> bool:
        return self.group in SHADED_GROUPS


@dataclass(frozen=True)
class ColumnGroup:
    """A band in the group header spanning consecutive columns."""
    label: str
    first: int
    count: int
    shaded: bool = False


@dataclass(frozen=True)
class TableTemplate:
    """Columns and header groups of one table variant."""
    variant: TableVariant
    columns: Tuple[ColumnSpec, ...]

    @property
    def groups(self) -> List[ColumnGroup]:
        groups: List[ColumnGroup] = []
        for idx, col in enumerate(self.columns):
            if groups and groups[-1].label == col.group:
                last = groups[-1]
                groups[-1] = ColumnGroup(last.label, last.first, last.count + 1, last.shaded)
            else:
                groups.append(ColumnGroup(col.group, idx, 1, col.shaded))
        return groups

    def column_widths(self, total_width: float) -> List[float]:
        """Absolute column widths from the template ratios."""
        return [spec.width_ratio * total_width for spec in self.columns]

    def has_remarks(self) -> bool:
        return any(spec.kind == ColumnKind.REMARKS for spec in self.columns)


SHIP_STAFF_COLUMNS = (
    ColumnSpec("SR NO", 0.04, "serial", alignment="center"),
    ColumnSpec("DEFICIENCY", 0.14, "deficiency"),
    ColumnSpec("MASTER'S - CAUSE\nANALYSIS", 0.12, "cause_analysis"),
    ColumnSpec("CORRECTIVE ACTION", 0.12, "corrective_action"),
    ColumnSpec("PREVENTIVE ACTION", 0.12, "preventive_action"),
    ColumnSpec("COMPL DATE", 0.08, "completion_date", ColumnKind.DATE, alignment="center"),
)

OFFICE_COLUMNS = (
    ColumnSpec("COMPANY ANALYSIS", 0.20, "company_analysis", group=OFFICE),
    ColumnSpec("REMARKS*", 0.18, "remarks", ColumnKind.REMARKS, group=OFFICE),
)

# Ship staff columns widened to fill the page when office columns are hidden
# (0.05 + 0.23 + 0.19 + 0.19 + 0.19 + 0.15 = 1.0)
SHIP_STAFF_ONLY_COLUMNS = (
    ColumnSpec("SR NO", 0.05, "serial", alignment="center"),
    ColumnSpec("DEFICIENCY", 0.23, "deficiency"),
    ColumnSpec("MASTER'S - CAUSE\nANALYSIS", 0.19, "cause_analysis"),
    ColumnSpec("CORRECTIVE ACTION", 0.19, "corrective_action"),
    ColumnSpec("PREVENTIVE ACTION", 0.19, "preventive_action"),
    ColumnSpec("COMPL DATE", 0.15, "completion_date", ColumnKind.DATE, alignment="center"),
)


def validate_widths(columns: Tuple[ColumnSpec, ...]) -> None:
    """Column ratios must be positive and sum to 1."""
    if not columns:
        raise LayoutInvariantError("A table needs at least one column")
    if any(spec.width_ratio <= 0 for spec in columns):
        raise LayoutInvariantError("Column width ratios must be positive")
    total = math.fsum(spec.width_ratio for spec in columns)
    if not math.isclose(total, 1.0, abs_tol=1e-9):
        raise LayoutInvariantError(f"Column widths sum to {total}, expected 1.0")


def build_template(variant: TableVariant, columns: Tuple[ColumnSpec, ...]) -> TableTemplate:
    """Create a template after checking its widths."""
    validate_widths(columns)
    return TableTemplate(variant=variant, columns=columns)


TEMPLATES: Dict[TableVariant, TableTemplate] = {
    TableVariant.SHIP_STAFF_AND_OFFICE: build_template(
        TableVariant.SHIP_STAFF_AND_OFFICE, SHIP_STAFF_COLUMNS + OFFICE_COLUMNS
    ),
    TableVariant.SHIP_STAFF_ONLY: build_template(
        TableVariant.SHIP_STAFF_ONLY, SHIP_STAFF_ONLY_COLUMNS
    ),
}


def get_template(variant) -> TableTemplate:
    """Look up a table template by variant or variant name."""
    if isinstance(variant, str):
        try:
            variant = TableVariant(variant)
        except ValueError as exc:
            raise ConfigError(f"Unknown table variant: {variant!r}") from exc
    return TEMPLATES[variant]


def cell_text(entry: Entry, spec: ColumnSpec, date_format: str) -> str:
    """Text content of a text or date column for an entry."""
    if spec.kind == ColumnKind.DATE:
        value = getattr(entry, spec.key)
        return value.strftime(date_format) if value else ""
    if spec.kind == ColumnKind.REMARKS:
        return ""
    return getattr(entry, spec.key) or ""
