"""End-to-end tests for ReportRenderer: pagination, headers, remarks and output."""

import io
import math
from datetime import date

import pytest
from pypdf import PdfReader
from reportlab.pdfgen import canvas

from deficiency_pdf.cells import CellRenderer, RemarksMode
from deficiency_pdf.columns import get_template
from deficiency_pdf.composer import PageComposer
from deficiency_pdf.config import RenderConfig
from deficiency_pdf.errors import (
    LayoutInvariantError,
    PageLimitExceededError,
    ReportNotFoundError,
)
from deficiency_pdf.header import HeaderBlock
from deficiency_pdf.layout_engine import PageLayout, RowState
from deficiency_pdf.measure import TextMeasurer
from deficiency_pdf.models import (
    Entry,
    InspectionStatus,
    ReportDocument,
    Signer,
    document_to_dict,
)
from deficiency_pdf.pdf_renderer import (
    EMPTY_MARKER,
    FileReportSource,
    MemoryReportSource,
    ReportRenderer,
    render_report,
)
from deficiency_pdf.signatures import MemoryImageStore
from deficiency_pdf.styles import ReportStyle


def page_texts(pdf: bytes):
    reader = PdfReader(io.BytesIO(pdf))
    return [page.extract_text() for page in reader.pages]


def page_image_counts(pdf: bytes):
    reader = PdfReader(io.BytesIO(pdf))
    return [len(page.images) for page in reader.pages]


# ── Three-entry scenario ────────────────────────────────────────────


@pytest.fixture
def three_entry_result(config, three_entry_document, signer, signature_png):
    store = MemoryImageStore({signer.signature_ref: signature_png})
    return ReportRenderer(config=config, store=store).render(three_entry_document)


def test_long_row_splits_over_three_pages(three_entry_result):
    result = three_entry_result
    assert result.page_count == 3
    assert len(PdfReader(io.BytesIO(result.pdf)).pages) == 3

    first, long_row, signed = result.rows
    assert first.state == RowState.FITS
    assert first.pages == [0]
    assert long_row.state == RowState.SPLIT
    assert len(long_row.segments) == 3
    assert long_row.pages == [0, 1, 2]
    assert signed.state == RowState.FITS
    assert signed.pages == [2]


def test_page_count_matches_content_height(config, three_entry_result):
    result = three_entry_result
    layout = PageLayout.from_config(config)
    # page one spends the title and vessel rows on top of the continuation header
    first_page_offset = layout.continuation_body_top - result.rows[0].segments[0].bbox[3]
    assert math.isclose(first_page_offset, 40.0)
    content = first_page_offset + sum(r.measured_height for r in result.rows)
    assert math.ceil(content / layout.usable_height) == result.page_count


def test_split_row_height_is_conserved(three_entry_result):
    long_row = three_entry_result.rows[1]
    assert long_row.measured_height == 100 * 8 + 2 * 4
    assert sum(s.height for s in long_row.segments) == pytest.approx(long_row.measured_height)
    assert [s.height for s in long_row.segments[:2]] == [276, 336]


def test_split_row_draws_every_line_once(three_entry_result):
    pdf = three_entry_result.pdf
    for i in range(100):
        assert pdf.count(b"(line %d) Tj" % i) == 1, f"line {i}"


def test_signature_only_on_signed_row(three_entry_result):
    result = three_entry_result
    assert result.signature_rows == ["3"]
    assert result.rows[0].remarks_mode == RemarksMode.FALLBACK
    assert result.rows[1].remarks_mode == RemarksMode.FALLBACK
    assert page_image_counts(result.pdf) == [0, 0, 1]


def test_table_headers_and_page_numbers_on_every_page(three_entry_result):
    texts = page_texts(three_entry_result.pdf)
    for n, text in enumerate(texts, start=1):
        assert "COMPANY ANALYSIS" in text
        assert "REMARKS*" in text
        assert "SHIP STAFF" in text
        assert f"{n}/3" in text
        assert "Controlled copy" in text
    assert "THIRD PARTY DEFICIENCY SUMMARY" in texts[0]
    assert "THIRD PARTY DEFICIENCY SUMMARY" not in texts[1]


def test_render_is_deterministic(config, three_entry_document, signer, signature_png):
    store = MemoryImageStore({signer.signature_ref: signature_png})
    first = ReportRenderer(config=config, store=store).render(three_entry_document)
    second = ReportRenderer(config=config, store=store).render(three_entry_document)
    assert first.pdf == second.pdf


# ── Split signed rows ───────────────────────────────────────────────


def test_split_signed_row_keeps_remarks_whole(config, signer, signature_png):
    fillers = tuple(Entry(serial=str(i)) for i in range(1, 12))
    signed = Entry(
        serial="12",
        deficiency="\n".join(f"line {i}" for i in range(80)),
        status=InspectionStatus.CLOSED_SATISFACTORILY,
        signer=signer,
        sign_date=date(2025, 4, 1),
    )
    store = MemoryImageStore({signer.signature_ref: signature_png})
    result = ReportRenderer(config=config, store=store).render(
        ReportDocument(entries=fillers + (signed,))
    )

    row = result.rows[-1]
    assert all(r.pages == [0] for r in result.rows[:-1])
    # 11 rows of 20 leave 77.28 on page one; only 76 of the row would fit there
    assert row.state == RowState.SPLIT
    assert row.forced_break
    assert row.segments[0].page_index == 1
    assert row.segments[0].height >= 77 + 8
    assert row.remarks_mode == RemarksMode.SIGNATURE
    assert page_image_counts(result.pdf) == [0, 1, 0]
    assert sum(s.height for s in row.segments) == pytest.approx(row.measured_height)


# ── Empty and minimal reports ───────────────────────────────────────


def test_empty_report_shows_marker(config):
    result = ReportRenderer(config=config).render(ReportDocument(vessel_name="MV EMPTY"))
    assert result.rows == []
    assert result.page_count == 1
    texts = page_texts(result.pdf)
    assert len(texts) == 1
    assert EMPTY_MARKER in texts[0]
    assert "REMARKS*" in texts[0]


def test_minimum_row_height(config):
    config.table_variant = "ship_staff_only"
    document = ReportDocument(entries=(Entry(serial="7"),))
    result = ReportRenderer(config=config).render(document)
    assert result.rows[0].measured_height == config.min_row_height
    assert result.rows[0].remarks_mode is None


def test_status_badge_row_is_minimum_height(config):
    # badge shrinks to 20 - 2 * 4 so a lone status fits the floor
    document = ReportDocument(entries=(Entry(serial="1", deficiency="Fire damper corroded"),))
    result = ReportRenderer(config=config).render(document)
    assert result.rows[0].measured_height == config.min_row_height
    assert result.rows[0].remarks_mode == RemarksMode.FALLBACK


# ── Signature failures ──────────────────────────────────────────────


def test_missing_signature_falls_back(config, three_entry_document):
    result = ReportRenderer(config=config, store=MemoryImageStore()).render(three_entry_document)
    assert result.signature_rows == []
    assert result.rows[2].remarks_mode == RemarksMode.FALLBACK
    assert page_image_counts(result.pdf) == [0, 0, 0]


def test_corrupt_signature_falls_back(config, three_entry_document, signer):
    store = MemoryImageStore({signer.signature_ref: b"not an image"})
    result = ReportRenderer(config=config, store=store).render(three_entry_document)
    assert result.rows[2].remarks_mode == RemarksMode.FALLBACK
    assert result.page_count == 3


def test_store_errors_do_not_abort(config, three_entry_document):
    class BrokenStore:
        def fetch(self, key):
            raise OSError("connection reset")

    result = ReportRenderer(config=config, store=BrokenStore()).render(three_entry_document)
    assert result.signature_rows == []


# ── Logo ────────────────────────────────────────────────────────────


def test_logo_drawn_on_every_page(config, three_entry_document, signature_png):
    document = ReportDocument(
        logo_ref="/uploads/logo.png", entries=three_entry_document.entries[:2]
    )
    store = MemoryImageStore({"/uploads/logo.png": signature_png})
    result = ReportRenderer(config=config, store=store).render(document)
    assert result.page_count == 3
    assert page_image_counts(result.pdf) == [1, 1, 1]


def test_missing_logo_is_skipped(config):
    document = ReportDocument(logo_ref="/uploads/missing.png", entries=(Entry(serial="1"),))
    result = ReportRenderer(config=config).render(document)
    assert page_image_counts(result.pdf) == [0]


# ── Limits and lookup ───────────────────────────────────────────────


def test_page_limit(config, three_entry_document):
    config.max_pages = 2
    with pytest.raises(PageLimitExceededError) as exc_info:
        ReportRenderer(config=config).render(three_entry_document)
    assert exc_info.value.max_pages == 2


def test_report_not_found(config):
    with pytest.raises(ReportNotFoundError) as exc_info:
        render_report("missing-id", MemoryReportSource(), config=config)
    assert exc_info.value.report_id == "missing-id"


def test_render_report_from_memory(config, three_entry_document):
    source = MemoryReportSource({"r1": three_entry_document})
    result = render_report("r1", source, config=config)
    assert result.page_count == 3


def test_file_report_source(tmp_path, three_entry_document):
    import json

    (tmp_path / "r1.json").write_text(json.dumps(document_to_dict(three_entry_document)))
    source = FileReportSource(tmp_path)
    assert source.get("r1") == three_entry_document
    assert source.get("r2") is None


# ── Composer ────────────────────────────────────────────────────────


def make_composer(config, document=None):
    style = ReportStyle()
    header = HeaderBlock(
        layout=PageLayout.from_config(config), config=config, style=style,
        document=document or ReportDocument(),
    )
    return PageComposer(config, style, get_template(config.table_variant), header)


def test_table_headers_emit_identical_operators(config):
    composer = make_composer(config)
    code = composer.canvas._code

    start = len(code)
    composer.draw_table_headers(420.0)
    first = code[start:]
    start = len(code)
    composer.draw_table_headers(300.0)
    second = code[start:]

    assert first[0] == second[0] == "q"
    assert first[1] != second[1]  # translation
    assert first[2:] == second[2:]


def test_composer_page_limit(config):
    config.max_pages = 1
    composer = make_composer(config)
    composer.start()
    with pytest.raises(PageLimitExceededError):
        composer.new_page()


def test_cursor_cannot_change_page(config):
    composer = make_composer(config)
    cursor = composer.start()
    with pytest.raises(LayoutInvariantError):
        composer.cursor = cursor.on_new_page(100.0)
    assert composer.new_page().page_index == 1


def test_continuation_pages_start_higher(config):
    composer = make_composer(config)
    first = composer.start()
    second = composer.new_page()
    assert second.y > first.y
    assert second.y == composer.layout.continuation_body_top


def test_column_widths_computed_once(config):
    composer = make_composer(config)
    widths = composer.column_widths
    assert isinstance(widths, tuple)
    assert composer.column_widths is widths
    assert math.isclose(sum(widths), composer.layout.content_width)


# ── Remarks measurement ─────────────────────────────────────────────


def make_cells(config, signatures):
    c = canvas.Canvas(io.BytesIO())
    measurer = TextMeasurer("Helvetica", config.padding, config.min_row_height)
    return CellRenderer(c, config, ReportStyle(), measurer, signatures)


def test_remarks_height_with_signature(config, signer):
    entry = Entry(
        serial="1", status=InspectionStatus.CLOSED_SATISFACTORILY,
        signer=signer, sign_date=date(2025, 1, 2),
    )
    cells = make_cells(config, {signer.id: b"png"})
    # badge 12 + gap 8 + image 25 + gap 8 + name 12 + 4 + date 8, plus padding
    assert cells.remarks_height(entry) == 77 + 8


def test_remarks_height_without_signature(config, signer):
    entry = Entry(serial="1", signer=signer, sign_date=date(2025, 1, 2))
    cells = make_cells(config, {})
    # badge 12 + gap 8 + name 12 + 4 + date 8, plus padding
    assert cells.remarks_height(entry) == 44 + 8


def test_remarks_height_signer_without_name(config):
    entry = Entry(serial="1", signer=Signer(id="u2"))
    cells = make_cells(config, {})
    assert cells.remarks_height(entry) == config.min_row_height


def test_default_config_is_valid():
    RenderConfig().validate()
