"""Shared test fixtures for the deficiency report test suite."""

import io
from datetime import date

import pytest
from PIL import Image, ImageDraw

from deficiency_pdf.config import RenderConfig
from deficiency_pdf.models import Entry, InspectionStatus, ReportDocument, Signer


@pytest.fixture
def config():
    """Reproducible, uncompressed output so content streams can be inspected."""
    return RenderConfig(invariant=True, page_compression=False)


@pytest.fixture
def signature_png():
    """A small RGB PNG with a pen stroke on it."""
    image = Image.new("RGB", (120, 50), "white")
    ImageDraw.Draw(image).line([(5, 40), (40, 10), (80, 35), (115, 12)], fill=(0, 0, 128), width=3)
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def signer():
    return Signer(id="user-1", name="Jane Doe", role="ADMIN", signature_ref="/uploads/signatures/user-1.png")


@pytest.fixture
def long_text():
    """100 short lines; 808pt tall as a cell."""
    return "\n".join(f"line {i}" for i in range(100))


@pytest.fixture
def three_entry_document(signer, long_text):
    """Small row, a row spanning three pages, then a signed row."""
    return ReportDocument(
        company_name="ACME SHIPPING",
        vessel_name="MV TEST",
        inspected_by="PSC",
        ship_file_no="SF-1",
        office_file_no="OF-1",
        form_no="FM-10",
        inspection_date=date(2025, 3, 14),
        footer_text="Controlled copy",
        entries=(
            Entry(serial="1", deficiency="Fire damper corroded"),
            Entry(serial="2", deficiency=long_text),
            Entry(
                serial="3",
                deficiency="Lifebuoy light inoperative",
                status=InspectionStatus.CLOSED_SATISFACTORILY,
                signer=signer,
                sign_date=date(2025, 4, 1),
            ),
        ),
    )
