"""PDF rendering of inspection reports using ReportLab."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Protocol

import yaml

from .cells import CellRenderer, RemarksMode, load_image
from .columns import get_template
from .composer import PageComposer
from .config import RenderConfig
from .errors import ConfigError, ReportError, ReportNotFoundError, RenderError
from .header import HeaderBlock
from .layout_engine import PageLayout
from .measure import TextMeasurer
from .models import ReportDocument, document_from_dict
from .row_layout import RenderedRow, RowLayoutEngine
from .signatures import ImageStore, MemoryImageStore, SignatureResolver
from .styles import ReportStyle, register_fonts

logger = logging.getLogger(__name__)

EMPTY_MARKER = "No entries found."


@dataclass
class RenderResult:
    """A finished report and the layout it was produced from."""
    pdf: bytes
    page_count: int
    rows: List[RenderedRow]

    @property
    def signature_rows(self) -> List[str]:
        """Serials of rows whose remarks cell shows a signature image."""
        return [r.serial for r in self.rows if r.remarks_mode == RemarksMode.SIGNATURE]


class ReportSource(Protocol):
    """Looks up fully hydrated reports by id."""

    def get(self, report_id: str) -> Optional[ReportDocument]:
        ...


class MemoryReportSource:
    """Report source backed by a dict."""

    def __init__(self, reports: Optional[Dict[str, ReportDocument]] = None):
        self.reports = dict(reports or {})

    def get(self, report_id: str) -> Optional[ReportDocument]:
        return self.reports.get(report_id)


def load_document(path: Path) -> ReportDocument:
    """Read a report document from a JSON or YAML file."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ConfigError(f"{path} does not contain a report document")
    return document_from_dict(data)


class FileReportSource:
    """Reports stored as <report_id>.json / .yaml / .yml in a directory."""

    SUFFIXES = (".json", ".yaml", ".yml")

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def get(self, report_id: str) -> Optional[ReportDocument]:
        for suffix in self.SUFFIXES:
            path = self.directory / f"{report_id}{suffix}"
            if path.is_file():
                return load_document(path)
        return None


class ReportRenderer:
    """Renders inspection reports to landscape multi-page PDFs."""

    def __init__(
        self,
        config: Optional[RenderConfig] = None,
        store: Optional[ImageStore] = None,
        style: Optional[ReportStyle] = None,
    ):
        self.config = config or RenderConfig()
        self.config.validate()
        self.store = store if store is not None else MemoryImageStore()
        self.template = get_template(self.config.table_variant)
        self.style = style or register_fonts(self.config.font_dirs)

    def _load_logo(self, document: ReportDocument):
        if not document.logo_ref:
            return None
        try:
            data = self.store.fetch(document.logo_ref)
        except Exception as exc:
            logger.warning("Failed to load logo %s: %s", document.logo_ref, exc)
            return None
        if not data:
            logger.info("Logo %s not available, skipping", document.logo_ref)
            return None
        return load_image(data)

    def render(self, document: ReportDocument) -> RenderResult:
        """
        Render a complete report.

        Signatures are resolved first, then the header block, every entry
        in order and finally the footer pass. Either the whole PDF is
        returned or an error is raised; there is no partial output.

        Returns:
            RenderResult with the PDF bytes, page count and row metadata
        """
        cfg = self.config
        entries = list(document.entries)

        # Measurement depends on which signatures are available, so this
        # completes before anything is drawn.
        signatures = {}
        if self.template.has_remarks():
            signatures = SignatureResolver(self.store, cfg.signature_workers).preload(entries)

        try:
            header = HeaderBlock(
                layout=PageLayout.from_config(cfg), config=cfg, style=self.style,
                document=document, logo=self._load_logo(document),
            )
            composer = PageComposer(cfg, self.style, self.template, header)

            measurer = TextMeasurer(self.style.font_regular, cfg.padding, cfg.min_row_height)
            cells = CellRenderer(composer.canvas, cfg, self.style, measurer, signatures)
            rows_engine = RowLayoutEngine(composer, cells, measurer, cfg, self.template)

            composer.start()
            rows: List[RenderedRow] = []
            for row_index, entry in enumerate(entries):
                rows.append(rows_engine.render(entry, row_index))

            if not entries:
                composer.draw_empty_marker(EMPTY_MARKER)

            page_count = composer.page_count
            pdf = composer.finish()
        except ReportError:
            raise
        except Exception as exc:
            raise RenderError(f"Rendering failed: {exc}") from exc

        logger.info(
            "Rendered %d entries on %d pages (%d bytes)", len(entries), page_count, len(pdf)
        )
        return RenderResult(pdf=pdf, page_count=page_count, rows=rows)


def render_report(
    report_id: str,
    source: ReportSource,
    store: Optional[ImageStore] = None,
    config: Optional[RenderConfig] = None,
) -> RenderResult:
    """
    Look up a report and render it.

    Raises:
        ReportNotFoundError: the source has no such report; nothing is drawn
    """
    document = source.get(report_id)
    if document is None:
        raise ReportNotFoundError(report_id)
    return ReportRenderer(config=config, store=store).render(document)
