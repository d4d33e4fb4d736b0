# SPDX-License-Identifier: Apache-2.0
"""
PDF Field Filler - CLI Tool

Draws field values onto a template PDF using field descriptors exported from
the form editor.

Usage:
    fill-pdf <template.pdf> --fields <fields.json> [options]

Examples:
    fill-pdf form.pdf --fields fields.json --values values.json
    fill-pdf form.pdf -f fields.json -V values.json -o ./filled.pdf
    fill-pdf form.pdf -f fields.json --validate-only
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, NoReturn

import pypdfium2 as pdfium  # type: ignore[import-untyped]

from pdf_field_filler.core.models import FieldModelError, FieldSet
from pdf_field_filler.core.template_engine import DEFAULT_MAX_DEPTH
from pdf_field_filler.core.validation import Severity, validate_field_set
from pdf_field_filler.pipeline.errors import FillError
from pdf_field_filler.pipeline.fill_pipeline import FillConfig, FillPipeline

logger = logging.getLogger(__name__)

# Default output directory
DEFAULT_OUTPUT_DIR = "./output/"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed argument Namespace.
    """
    parser = argparse.ArgumentParser(
        prog="fill-pdf",
        description="PDF Field Filler - Renders field values onto a template PDF",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s form.pdf -f fields.json -V values.json     # Fill with values
  %(prog)s form.pdf -f fields.json                    # Fill with sample values
  %(prog)s form.pdf -f fields.json -o result.pdf      # Specify output file
  %(prog)s form.pdf -f fields.json --validate-only    # Check descriptors only
  %(prog)s form.pdf -f fields.json --debug            # Outline field boxes
""",
    )

    parser.add_argument(
        "template",
        type=Path,
        help="Path to the template PDF",
    )
    parser.add_argument(
        "-f",
        "--fields",
        type=Path,
        required=True,
        help="Field descriptor JSON (field array or export document)",
    )
    parser.add_argument(
        "-V",
        "--values",
        type=Path,
        help="Value map JSON object keyed by field key",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help=f"Output file path (default: {DEFAULT_OUTPUT_DIR}<template>_filled.pdf)",
    )

    render_group = parser.add_argument_group("Rendering options")
    render_group.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Template nesting limit (default: {DEFAULT_MAX_DEPTH})",
    )
    render_group.add_argument(
        "--min-font-size",
        type=float,
        default=6.0,
        help="Smallest font size for auto-sized text (default: 6.0)",
    )
    render_group.add_argument(
        "--include-disabled",
        action="store_true",
        help="Render fields that are disabled in the editor",
    )

    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Validate the field descriptors and exit without writing a PDF",
    )

    # Debug options
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode (draw bounding boxes)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    return parser.parse_args(argv)


def load_json(path: Path) -> Any:
    """Read a JSON file.

    Raises:
        ValueError: If the file is not valid JSON.
    """
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"{path}: invalid JSON ({exc})") from exc


def count_pages(template: Path) -> int:
    """Number of pages in a PDF."""
    pdf = pdfium.PdfDocument(str(template))
    try:
        return len(pdf)
    finally:
        pdf.close()


def run(args: argparse.Namespace) -> int:
    """Execute the fill pipeline.

    Args:
        args: Command line arguments.

    Returns:
        Exit code (0: success, 1: failure).
    """
    template: Path = args.template

    # Validate input files
    if not template.exists():
        print(f"Error: File not found: {template}", file=sys.stderr)
        return 1
    if template.suffix.lower() != ".pdf":
        print(f"Error: Not a PDF file: {template}", file=sys.stderr)
        return 1
    if not args.fields.exists():
        print(f"Error: Field file not found: {args.fields}", file=sys.stderr)
        return 1
    if args.values is not None and not args.values.exists():
        print(f"Error: Value file not found: {args.values}", file=sys.stderr)
        return 1

    try:
        fields = FieldSet.from_dict(load_json(args.fields))
        values = load_json(args.values) if args.values is not None else {}
    except (FieldModelError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if not isinstance(values, dict):
        print("Error: Value file must contain a JSON object", file=sys.stderr)
        return 1

    try:
        page_count = count_pages(template)
    except pdfium.PdfiumError as e:
        print(f"Error: Cannot open {template}: {e}", file=sys.stderr)
        return 1

    issues = validate_field_set(fields, page_count=page_count, data_keys=values.keys())
    errors = [issue for issue in issues if issue.severity == Severity.ERROR]

    if args.validate_only:
        for issue in issues:
            print(issue)
        print(f"{len(fields)} field(s), {len(errors)} error(s), {len(issues) - len(errors)} warning(s)")
        return 1 if errors else 0

    for issue in issues:
        logger.warning("%s", issue)

    # Determine output path
    if args.output:
        output_path: Path = args.output
    else:
        output_path = Path(DEFAULT_OUTPUT_DIR) / f"{template.stem}_filled.pdf"

    config = FillConfig(
        max_template_depth=args.max_depth,
        min_font_size=args.min_font_size,
        skip_disabled=not args.include_disabled,
        debug_draw_bbox=args.debug,
    )

    print(f"Template: {template}")
    print(f"Output: {output_path}")
    print(f"Fields: {len(fields)}")
    if args.debug:
        print("Debug mode: enabled")
    print()

    pipeline = FillPipeline(config)
    try:
        result = pipeline.fill(template, fields, values, output_path)
    except (FillError, ValueError) as e:
        print(f"Error: Fill failed: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1

    print(f"Complete: {output_path}")
    print(f"  Rendered: {result.stats.rendered}")
    print(f"  Skipped: {result.stats.skipped}")
    for warning in result.warnings:
        print(f"  Warning: [{warning.field_key}] {warning.message}")

    return 0


def main() -> NoReturn:
    """Main entry point."""
    args = parse_args()

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    sys.exit(run(args))


if __name__ == "__main__":
    main()
