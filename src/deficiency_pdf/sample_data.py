"""Generate synthetic inspection reports for demos and stress runs."""

import io
from datetime import date, timedelta
from typing import Dict, List, Tuple

import numpy as np
from faker import Faker
from PIL import Image, ImageDraw

from .models import Entry, InspectionStatus, ReportDocument, Signer

INSPECTION_TYPES = ["PSC", "SIRE", "CDI", "RightShip", "Flag State", "Class", "Internal Audit"]
VESSEL_PREFIXES = ["MV", "MT", "MSC", "SS"]
SIGNER_ROLES = ["ADMIN", "SUPER_ADMIN", "CAPTAIN", "USER"]

# Relative frequency of each status in generated entries
STATUS_WEIGHTS = {
    InspectionStatus.OPEN: 0.35,
    InspectionStatus.FURTHER_ACTION_NEEDED: 0.25,
    InspectionStatus.CLOSED_SATISFACTORILY: 0.40,
}

DEFICIENCY_TEMPLATES = [
    "{item} found {condition} during {area} round.",
    "{area}: {item} {condition}, no record of last maintenance.",
    "Crew unfamiliar with {item} operation in {area}.",
    "{item} in {area} {condition}; spare not available on board.",
]
ITEMS = ["Fire damper", "Emergency light", "Oily water separator", "Lifebuoy light",
         "Gas detector", "Pilot ladder", "Fire hose", "Bilge alarm", "Rescue boat engine"]
CONDITIONS = ["corroded", "inoperative", "not tested", "missing", "damaged", "expired"]
AREAS = ["engine room", "bridge", "main deck", "accommodation", "steering gear room", "pump room"]


def make_signature_png(rng: np.random.Generator, width: int = 240, height: int = 100) -> bytes:
    """Draw a random pen stroke and return it as PNG bytes."""
    image = Image.new("RGB", (width, height), "white")
    draw = ImageDraw.Draw(image)
    xs = np.linspace(10, width - 10, 40)
    phase = float(rng.uniform(0, np.pi))
    ys = height / 2 + (height / 3) * np.sin(xs / float(rng.uniform(12, 30)) + phase)
    ys += rng.normal(0, 3, size=xs.shape)
    points = [(float(x), float(y)) for x, y in zip(xs, ys)]
    draw.line(points, fill=(20, 30, 120), width=3)

    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def generate_signers(
    rng: np.random.Generator,
    fake: Faker,
    num_signers: int = 3,
    with_signature_prob: float = 0.7,
) -> Tuple[List[Signer], Dict[str, bytes]]:
    """
    Generate office signers and their signature images.

    Returns:
        Tuple of (signers, images keyed by signature reference)
    """
    signers = []
    images: Dict[str, bytes] = {}
    for i in range(num_signers):
        signer_id = f"user-{i + 1:03d}"
        signature_ref = None
        if rng.random() < with_signature_prob:
            signature_ref = f"/uploads/signatures/{signer_id}.png"
            images[signature_ref] = make_signature_png(rng)
        signers.append(Signer(
            id=signer_id,
            name=fake.name(),
            role=str(rng.choice(SIGNER_ROLES)),
            signature_ref=signature_ref,
        ))
    return signers, images


def generate_text(rng: np.random.Generator, fake: Faker, max_sentences: int) -> str:
    """A few sentences of filler, sometimes empty."""
    if max_sentences <= 0 or rng.random() < 0.1:
        return ""
    return fake.paragraph(nb_sentences=int(rng.integers(1, max_sentences + 1)))


def generate_entry(
    serial: int,
    signers: List[Signer],
    inspection_date: date,
    rng: np.random.Generator,
    fake: Faker,
    verbosity: int = 4,
) -> Entry:
    """Generate one deficiency entry."""
    deficiency = str(rng.choice(DEFICIENCY_TEMPLATES)).format(
        item=rng.choice(ITEMS), condition=rng.choice(CONDITIONS), area=rng.choice(AREAS),
    )
    statuses = list(STATUS_WEIGHTS)
    status = statuses[int(rng.choice(len(statuses), p=list(STATUS_WEIGHTS.values())))]

    signer = None
    sign_date = None
    if signers and status != InspectionStatus.OPEN:
        signer = signers[int(rng.integers(0, len(signers)))]
        sign_date = inspection_date + timedelta(days=int(rng.integers(3, 45)))

    completion_date = None
    if rng.random() > 0.3:
        completion_date = inspection_date + timedelta(days=int(rng.integers(1, 30)))

    return Entry(
        serial=str(serial),
        deficiency=deficiency,
        cause_analysis=generate_text(rng, fake, verbosity),
        corrective_action=generate_text(rng, fake, verbosity),
        preventive_action=generate_text(rng, fake, verbosity),
        completion_date=completion_date,
        status=status,
        signer=signer,
        sign_date=sign_date,
        company_analysis=generate_text(rng, fake, verbosity * 2),
    )


def generate_report(
    rng: np.random.Generator,
    num_entries: int = 12,
    verbosity: int = 4,
) -> Tuple[ReportDocument, Dict[str, bytes]]:
    """
    Generate a complete synthetic report.

    Args:
        rng: Random number generator (drives Faker as well)
        num_entries: Number of deficiency entries
        verbosity: Upper bound on sentences per free-text field

    Returns:
        Tuple of (document, signature images keyed by reference)
    """
    fake = Faker()
    fake.seed_instance(int(rng.integers(0, 2**31)))

    inspection_date = date(2025, 1, 1) + timedelta(days=int(rng.integers(0, 365)))
    signers, images = generate_signers(rng, fake)
    entries = tuple(
        generate_entry(i + 1, signers, inspection_date, rng, fake, verbosity)
        for i in range(num_entries)
    )

    document = ReportDocument(
        company_name=fake.company().upper() + " SHIPPING",
        vessel_name=f"{rng.choice(VESSEL_PREFIXES)} {fake.last_name().upper()}",
        inspected_by=str(rng.choice(INSPECTION_TYPES)),
        ship_file_no=f"SF-{int(rng.integers(100, 999))}",
        office_file_no=f"OF-{int(rng.integers(1000, 9999))}",
        revision_no=str(int(rng.integers(1, 6))),
        form_no=f"FM-{int(rng.integers(10, 99))}",
        inspection_date=inspection_date,
        footer_text=f"{fake.company()} - Controlled document, uncontrolled when printed",
        entries=entries,
    )
    return document, images
