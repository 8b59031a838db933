"""Rendering configuration and YAML loading."""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List, Optional
import yaml

from .errors import ConfigError


@dataclass
class RenderConfig:
    """Geometry, typography and limits for one render."""

    # Page (A4 landscape, points)
    page_width: float = 841.89
    page_height: float = 595.28
    margin: float = 40.0
    footer_reserve: float = 30.0  # kept free above the bottom margin
    footer_offset: float = 25.0   # footer baseline area, from the page bottom

    # Table body
    font_size: float = 7.0
    line_gap: float = 1.0
    padding: float = 4.0
    min_row_height: float = 20.0
    group_header_height: float = 18.0
    column_header_height: float = 35.0
    group_header_font_size: float = 8.0

    # Header block
    header_box_height: float = 70.0
    header_gap: float = 15.0        # below the header box on page one
    continuation_gap: float = 25.0  # below the header box on later pages
    title_height: float = 25.0
    vessel_row_height: float = 25.0
    logo_size: float = 50.0

    # Remarks cell
    badge_font_size: float = 8.0
    signature_height: float = 25.0
    signature_max_width: float = 60.0
    element_gap: float = 8.0

    table_variant: str = "ship_staff_and_office"
    date_format: str = "%m/%d/%Y"

    # Limits and resources
    max_pages: Optional[int] = 500
    signature_workers: int = 4
    font_dirs: List[Path] = field(default_factory=list)

    # Output
    page_compression: bool = True
    invariant: bool = False  # reproducible bytes (fixed IDs and timestamps)

    @property
    def line_height(self) -> float:
        return self.font_size + self.line_gap

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin

    def validate(self) -> None:
        """Reject configurations the layout cannot work with."""
        if self.font_size <= 0 or self.line_gap < 0:
            raise ConfigError("font_size must be positive and line_gap non-negative")
        if self.min_row_height < self.line_height + 2 * self.padding:
            raise ConfigError("min_row_height must hold one line plus padding")
        if self.min_row_height - 2 * self.padding < self.badge_font_size:
            raise ConfigError("min_row_height must hold a status badge plus padding")
        if self.max_pages is not None and self.max_pages < 1:
            raise ConfigError("max_pages must be at least 1")
        if self.signature_workers < 1:
            raise ConfigError("signature_workers must be at least 1")

    @classmethod
    def from_yaml(cls, path: Path) -> "RenderConfig":
        """Load configuration from a YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

        if "font_dirs" in data:
            data["font_dirs"] = [Path(p) for p in data["font_dirs"] or []]

        config = cls(**data)
        config.validate()
        return config

    def to_yaml(self, path: Path) -> None:
        """Save configuration to a YAML file."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["font_dirs"] = [str(p) for p in self.font_dirs]
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def load_config(path: Optional[Path] = None) -> RenderConfig:
    """Load config from path or return default config."""
    if path is None:
        return RenderConfig()
    return RenderConfig.from_yaml(path)
