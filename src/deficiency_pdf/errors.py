"""Error types for report rendering."""

__all__ = [
    "ConfigError",
    "LayoutInvariantError",
    "PageLimitExceededError",
    "RenderError",
    "ReportError",
    "ReportNotFoundError",
]


class ReportError(Exception):
    """Base error for report rendering."""


class ReportNotFoundError(ReportError):
    """The requested report record does not exist."""

    def __init__(self, report_id: str):
        super().__init__(f"Inspection report not found: {report_id}")
        self.report_id = report_id


class ConfigError(ReportError):
    """Invalid configuration or input document."""


class LayoutInvariantError(ReportError):
    """A layout invariant was violated (caller or configuration bug)."""


class PageLimitExceededError(ReportError):
    """Rendering would produce more pages than the configured ceiling."""

    def __init__(self, max_pages: int):
        super().__init__(f"Report exceeds the page limit of {max_pages} pages")
        self.max_pages = max_pages


class RenderError(ReportError):
    """Drawing failed; no output was produced."""
