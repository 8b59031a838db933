"""Inspection report records consumed by the renderer."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .errors import ConfigError


class InspectionStatus(Enum):
    """Lifecycle status of a deficiency entry."""
    OPEN = "OPEN"
    FURTHER_ACTION_NEEDED = "FURTHER_ACTION_NEEDED"
    CLOSED_SATISFACTORILY = "CLOSED_SATISFACTORILY"

    @property
    def label(self) -> str:
        """Short label shown in the remarks badge."""
        return STATUS_LABELS[self]


STATUS_LABELS = {
    InspectionStatus.OPEN: "Open",
    InspectionStatus.FURTHER_ACTION_NEEDED: "Action Needed",
    InspectionStatus.CLOSED_SATISFACTORILY: "Closed",
}


@dataclass(frozen=True)
class Signer:
    """Office user who signed off an entry."""
    id: str
    name: str = ""
    role: str = ""
    signature_ref: Optional[str] = None  # content key in the image store


@dataclass(frozen=True)
class Entry:
    """One deficiency row."""
    serial: str
    deficiency: str = ""
    cause_analysis: str = ""
    corrective_action: str = ""
    preventive_action: str = ""
    completion_date: Optional[date] = None
    status: InspectionStatus = InspectionStatus.OPEN
    signer: Optional[Signer] = None
    sign_date: Optional[date] = None
    company_analysis: str = ""


@dataclass(frozen=True)
class ReportDocument:
    """A fully hydrated inspection report."""
    title: str = "THIRD PARTY DEFICIENCY SUMMARY"
    company_name: str = "SHIPPING COMPANY"
    vessel_name: str = ""
    inspected_by: str = ""
    ship_file_no: str = ""
    office_file_no: str = ""
    revision_no: str = "1"
    form_no: str = ""
    inspection_date: Optional[date] = None
    footer_text: str = ""
    logo_ref: Optional[str] = None
    entries: Tuple[Entry, ...] = field(default_factory=tuple)


def _parse_date(value: Any, key: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise ConfigError(f"Invalid date for '{key}': {value!r}") from exc


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def signer_from_dict(data: Dict[str, Any]) -> Signer:
    """Build a Signer from a plain dict."""
    if "id" not in data:
        raise ConfigError("Signer is missing 'id'")
    return Signer(
        id=str(data["id"]),
        name=_text(data.get("name")),
        role=_text(data.get("role")),
        signature_ref=data.get("signature_ref") or None,
    )


def entry_from_dict(data: Dict[str, Any]) -> Entry:
    """Build an Entry from a plain dict (JSON/YAML input)."""
    if "serial" not in data:
        raise ConfigError("Entry is missing 'serial'")

    status_value = data.get("status") or InspectionStatus.OPEN.value
    try:
        status = InspectionStatus(status_value)
    except ValueError as exc:
        raise ConfigError(f"Unknown status: {status_value!r}") from exc

    signer_data = data.get("signer")
    return Entry(
        serial=_text(data["serial"]),
        deficiency=_text(data.get("deficiency")),
        cause_analysis=_text(data.get("cause_analysis")),
        corrective_action=_text(data.get("corrective_action")),
        preventive_action=_text(data.get("preventive_action")),
        completion_date=_parse_date(data.get("completion_date"), "completion_date"),
        status=status,
        signer=signer_from_dict(signer_data) if signer_data else None,
        sign_date=_parse_date(data.get("sign_date"), "sign_date"),
        company_analysis=_text(data.get("company_analysis")),
    )


def document_from_dict(data: Dict[str, Any]) -> ReportDocument:
    """
    Build a ReportDocument from a plain dict.

    Missing header fields take the document defaults. Entries keep the
    order they have in the input.
    """
    defaults = ReportDocument()
    entries = tuple(entry_from_dict(e) for e in data.get("entries") or [])

    return ReportDocument(
        title=data.get("title") or defaults.title,
        company_name=data.get("company_name") or defaults.company_name,
        vessel_name=_text(data.get("vessel_name")),
        inspected_by=_text(data.get("inspected_by")),
        ship_file_no=_text(data.get("ship_file_no")),
        office_file_no=_text(data.get("office_file_no")),
        revision_no=_text(data.get("revision_no")) or defaults.revision_no,
        form_no=_text(data.get("form_no")),
        inspection_date=_parse_date(data.get("inspection_date"), "inspection_date"),
        footer_text=_text(data.get("footer_text")),
        logo_ref=data.get("logo_ref") or None,
        entries=entries,
    )


def document_to_dict(document: ReportDocument) -> Dict[str, Any]:
    """Inverse of document_from_dict, with ISO dates."""

    def iso(d: Optional[date]) -> Optional[str]:
        return d.isoformat() if d else None

    entries = []
    for entry in document.entries:
        signer = None
        if entry.signer:
            signer = {
                "id": entry.signer.id,
                "name": entry.signer.name,
                "role": entry.signer.role,
                "signature_ref": entry.signer.signature_ref,
            }
        entries.append({
            "serial": entry.serial,
            "deficiency": entry.deficiency,
            "cause_analysis": entry.cause_analysis,
            "corrective_action": entry.corrective_action,
            "preventive_action": entry.preventive_action,
            "completion_date": iso(entry.completion_date),
            "status": entry.status.value,
            "signer": signer,
            "sign_date": iso(entry.sign_date),
            "company_analysis": entry.company_analysis,
        })

    return {
        "title": document.title,
        "company_name": document.company_name,
        "vessel_name": document.vessel_name,
        "inspected_by": document.inspected_by,
        "ship_file_no": document.ship_file_no,
        "office_file_no": document.office_file_no,
        "revision_no": document.revision_no,
        "form_no": document.form_no,
        "inspection_date": iso(document.inspection_date),
        "footer_text": document.footer_text,
        "logo_ref": document.logo_ref,
        "entries": entries,
    }
