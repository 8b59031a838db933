"""Command-line interface for rendering deficiency reports."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import numpy as np

from .config import RenderConfig, load_config
from .errors import ReportError
from .manifest import clear_manifest, write_document_metadata, write_manifest
from .pdf_renderer import RenderResult, ReportRenderer, load_document
from .sample_data import generate_report
from .signatures import LocalImageStore, MemoryImageStore

logger = logging.getLogger(__name__)


def write_outputs(
    result: RenderResult,
    out_path: Path,
    config: RenderConfig,
    manifest_dir: Optional[Path] = None,
) -> None:
    """Write the PDF and, when asked, the layout manifest next to it."""
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(result.pdf)

    if manifest_dir is not None:
        doc_id = out_path.stem
        clear_manifest(manifest_dir)
        counts = write_manifest(result, manifest_dir, doc_id, config.page_height)
        write_document_metadata(doc_id, result, out_path, manifest_dir)
        logger.info("Manifest: %d rows, %d segments", counts["rows"], counts["segments"])


def cmd_render(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    document = load_document(args.input)
    images_root = args.images_root or args.input.parent
    renderer = ReportRenderer(config=config, store=LocalImageStore(images_root))

    result = renderer.render(document)
    write_outputs(result, args.output, config, args.manifest)
    print(f"Wrote {args.output} ({result.page_count} pages, {len(result.rows)} entries)")
    return 0


def cmd_sample(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    rng = np.random.default_rng(args.seed)
    document, images = generate_report(rng, num_entries=args.entries, verbosity=args.verbosity)
    renderer = ReportRenderer(config=config, store=MemoryImageStore(images))

    result = renderer.render(document)
    write_outputs(result, args.output, config, args.manifest)
    print(f"Wrote {args.output} ({result.page_count} pages, {len(result.rows)} entries)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Third-party deficiency report PDF renderer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Render a report from a JSON or YAML file")
    render.add_argument("input", type=Path, help="Report document (.json, .yaml)")
    render.add_argument(
        "--images-root",
        type=Path,
        help="Directory that signature and logo paths are relative to "
             "(defaults to the input's directory)",
    )
    render.set_defaults(func=cmd_render)

    sample = sub.add_parser("sample", help="Render a synthetic report")
    sample.add_argument("--entries", type=int, default=12, help="Number of entries")
    sample.add_argument("--seed", type=int, default=42, help="Random seed")
    sample.add_argument(
        "--verbosity",
        type=int,
        default=4,
        help="Maximum sentences per free-text field",
    )
    sample.set_defaults(func=cmd_sample)

    for p in (render, sample):
        p.add_argument("-o", "--output", type=Path, default=Path("report.pdf"), help="Output PDF path")
        p.add_argument("--config", type=Path, help="Path to YAML configuration file")
        p.add_argument("--manifest", type=Path, help="Directory for the JSONL layout manifest")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args)
    except ReportError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
