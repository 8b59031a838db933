"""Write the layout of a rendered report to JSONL."""

import json
from pathlib import Path
from typing import Any, Dict, List, Tuple

from .pdf_renderer import RenderResult
from .row_layout import RenderedRow, RenderedSegment


def to_top_left_bbox(
    bbox_rl: Tuple[float, float, float, float],
    page_height: float
) -> List[float]:
    """
    Convert a ReportLab bbox to top-left origin coordinates.

    ReportLab: origin at BOTTOM-LEFT, bbox = [x0, y0, x1, y1], y0 bottom
    Viewers/extractors: origin at TOP-LEFT, bbox = [x0, top, x1, bottom]
    """
    x0, y0, x1, y1 = bbox_rl
    return [round(x0, 2), round(page_height - y1, 2), round(x1, 2), round(page_height - y0, 2)]


def row_to_label(doc_id: str, row: RenderedRow) -> Dict[str, Any]:
    """One manifest line per entry."""
    return {
        "doc_id": doc_id,
        "row_index": row.row_index,
        "serial": row.serial,
        "measured_height": row.measured_height,
        "state": row.state.value,
        "forced_break": row.forced_break,
        "remarks": row.remarks_mode.value if row.remarks_mode else None,
        "pages": row.pages,
        "n_segments": len(row.segments),
    }


def segment_to_label(
    doc_id: str,
    row: RenderedRow,
    segment_index: int,
    segment: RenderedSegment,
    page_height: float,
) -> Dict[str, Any]:
    """One manifest line per drawn segment."""
    return {
        "doc_id": doc_id,
        "row_index": row.row_index,
        "segment_index": segment_index,
        "page_index": segment.page_index,
        "bbox": to_top_left_bbox(segment.bbox, page_height),
        "offset": segment.offset,
        "height": segment.height,
    }


def write_manifest(
    result: RenderResult,
    out_dir: Path,
    doc_id: str,
    page_height: float,
) -> Dict[str, int]:
    """
    Write rows.jsonl and segments.jsonl for one rendered report.

    Files are appended to, so several reports can share a directory.

    Returns dict with counts of each line type written.
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    counts = {"rows": 0, "segments": 0}
    with open(out_dir / "rows.jsonl", "a") as rows_f, \
            open(out_dir / "segments.jsonl", "a") as segs_f:
        for row in result.rows:
            rows_f.write(json.dumps(row_to_label(doc_id, row)) + "\n")
            counts["rows"] += 1
            for idx, segment in enumerate(row.segments):
                label = segment_to_label(doc_id, row, idx, segment, page_height)
                segs_f.write(json.dumps(label) + "\n")
                counts["segments"] += 1

    return counts


def write_document_metadata(
    doc_id: str,
    result: RenderResult,
    pdf_path: Path,
    out_dir: Path,
) -> None:
    """Append document-level metadata to documents.jsonl."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    metadata = {
        "doc_id": doc_id,
        "pdf_path": str(pdf_path),
        "page_count": result.page_count,
        "n_entries": len(result.rows),
        "n_split_rows": sum(1 for r in result.rows if len(r.segments) > 1),
        "signature_rows": result.signature_rows,
    }

    with open(out_dir / "documents.jsonl", "a") as f:
        f.write(json.dumps(metadata) + "\n")


def clear_manifest(out_dir: Path) -> None:
    """Remove existing manifest files."""
    out_dir = Path(out_dir)
    for name in ("rows.jsonl", "segments.jsonl", "documents.jsonl"):
        path = out_dir / name
        if path.exists():
            path.unlink()
