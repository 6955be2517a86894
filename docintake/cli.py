"""Command-line interface for single-file extraction and batch CSV export.

Files given on the command line belong to the user and are never
deleted; only rasterized page images created along the way are.
"""

import argparse
import asyncio
import csv
import json
import mimetypes
import sys
from pathlib import Path

from docintake.exceptions import DocIntakeError
from docintake.models import ExtractionMode, SourceDocument
from docintake.pipeline import DocumentPipeline, ProcessingOutcome
from docintake.utils.config import load_config
from docintake.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = ("*.pdf", "*.png", "*.jpg", "*.jpeg", "*.gif", "*.bmp", "*.tif", "*.tiff")
_META_COLUMNS = [
    "filename",
    "status",
    "document_type",
    "confidence",
    "method",
    "converted_to_image",
    "error",
]


def _find_documents(input_dir: Path) -> list[Path]:
    """Find all supported document files in a directory."""
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def _to_document(path: Path) -> SourceDocument:
    mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return SourceDocument.from_path(path, mime_type)


def _summary_row(outcome: ProcessingOutcome) -> dict[str, object]:
    row: dict[str, object] = {
        "filename": outcome.document.filename,
        "status": "success",
        "document_type": outcome.fields.document_type.value,
        "confidence": outcome.fields.confidence,
        "method": outcome.extraction.method.value,
        "converted_to_image": outcome.extraction.rasterized,
        "error": None,
    }
    if outcome.fields.specific is not None:
        row.update(outcome.fields.specific.values)
    return row


async def _process_all(
    pipeline: DocumentPipeline,
    files: list[Path],
    mode: ExtractionMode,
    jobs: int,
    verbose: bool,
) -> list[dict[str, object]]:
    semaphore = asyncio.Semaphore(max(jobs, 1))

    async def run_one(index: int, path: Path) -> dict[str, object]:
        async with semaphore:
            if verbose:
                print(f"Processing [{index}/{len(files)}]: {path.name}")
            try:
                outcome = await pipeline.process(_to_document(path), mode)
            except DocIntakeError as exc:
                logger.error("Failed to process %s: %s", path.name, exc.message)
                return {"filename": path.name, "status": "failed", "error": exc.message}
            return _summary_row(outcome)

    return list(
        await asyncio.gather(*(run_one(i, p) for i, p in enumerate(files, 1)))
    )


def process_folder(
    input_dir: Path,
    output_csv: Path,
    mode: ExtractionMode = ExtractionMode.SMART,
    jobs: int = 4,
    verbose: bool = False,
) -> dict[str, int]:
    """Process all documents in a folder and export results to CSV.

    Args:
        input_dir: Directory containing document files.
        output_csv: Path for the output CSV file.
        mode: Extraction mode for every file.
        jobs: Maximum documents processed concurrently.
        verbose: Whether to print per-file progress.

    Returns:
        Summary dict with total, successful, and failed counts.
    """
    files = _find_documents(input_dir)
    if not files:
        logger.warning("No documents found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d documents to process", len(files))
    pipeline = DocumentPipeline(load_config())
    results = asyncio.run(_process_all(pipeline, files, mode, jobs, verbose))

    _write_csv(results, output_csv)
    logger.info("Results written to %s", output_csv)

    successful = sum(1 for r in results if r["status"] == "success")
    summary = {"total": len(files), "successful": successful, "failed": len(files) - successful}
    _print_summary(summary, output_csv)
    return summary


def _write_csv(results: list[dict[str, object]], output_path: Path) -> None:
    """Write result rows to CSV; type-specific fields become extra columns."""
    if not results:
        return

    all_keys: set[str] = set()
    for r in results:
        all_keys.update(r.keys())

    field_columns = sorted(all_keys - set(_META_COLUMNS))
    columns = [c for c in _META_COLUMNS if c in all_keys] + field_columns

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(results)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    print(f"\n{'=' * 50}")
    print("Batch Processing Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def extract_single(
    file_path: Path,
    mode: ExtractionMode = ExtractionMode.SMART,
    include_raw_text: bool = False,
) -> dict:
    """Process one document and return the response payload."""
    config = load_config()
    pipeline = DocumentPipeline(config)
    outcome = asyncio.run(pipeline.process(_to_document(file_path), mode))
    return outcome.to_payload(
        include_raw_text=include_raw_text,
        preview_chars=config.upload.raw_text_preview_chars,
    )


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Document text and field extraction",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    modes = [m.value for m in ExtractionMode]

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    batch_parser = subparsers.add_parser("batch", help="Process a folder of documents")
    batch_parser.add_argument("input_dir", type=Path, help="Input directory with documents")
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument("-m", "--mode", choices=modes, default="smart")
    batch_parser.add_argument(
        "-j", "--jobs", type=int, default=4, help="Documents processed concurrently"
    )
    batch_parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    single_parser = subparsers.add_parser("extract", help="Process a single document")
    single_parser.add_argument("file", type=Path, help="Document file to process")
    single_parser.add_argument("-m", "--mode", choices=modes, default="smart")
    single_parser.add_argument(
        "--raw", action="store_true", help="Include the full text instead of a preview"
    )
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    args = parser.parse_args(argv)

    # Logs share stdout with the JSON result, so stay quiet unless asked.
    setup_logging("INFO" if getattr(args, "verbose", False) else "WARNING")

    if args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(
            args.input_dir,
            args.output,
            ExtractionMode(args.mode),
            args.jobs,
            args.verbose,
        )
    elif args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        try:
            result = extract_single(args.file, ExtractionMode(args.mode), args.raw)
        except DocIntakeError as exc:
            print(f"Error: {exc.message}", file=sys.stderr)
            if exc.suggestion:
                print(f"Hint: {exc.suggestion}", file=sys.stderr)
            sys.exit(2)
        output_str = json.dumps(result, indent=2, ensure_ascii=False)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(output_str, encoding="utf-8")
            print(f"Output written to {args.output}")
        else:
            print(output_str)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
