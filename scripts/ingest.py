#!/usr/bin/env python
"""Ingest local PDF files into the DocMind vector store.

Usage:
    python scripts/ingest.py manual.pdf              # Ingest one file
    python scripts/ingest.py docs/*.pdf --verbose    # Several files, with logs
    python scripts/ingest.py --seed                  # Store the sample sentences
"""
import argparse
import asyncio
import sys
from pathlib import Path
from datetime import datetime

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from docmind import config
from docmind.errors import DocMindError
from docmind.services import build_services
import structlog

logger = structlog.get_logger()


class ProgressReporter:
    """Simple progress reporter for CLI."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.start_time = None

    def start(self, message: str):
        """Start progress reporting."""
        self.start_time = datetime.now()
        print(f"\n{'=' * 60}")
        print(f"  {message}")
        print(f"{'=' * 60}\n")

    def update(self, file_name: str, current: int, total: int):
        """Update progress for the batch currently being stored."""
        percentage = (current / total) * 100 if total > 0 else 0
        bar_length = 40
        filled = int(bar_length * current / total) if total > 0 else 0
        bar = "█" * filled + "░" * (bar_length - filled)

        print(
            f"\r  [{bar}] {percentage:5.1f}% (batch {current}/{total}) {file_name[:30]:<30}",
            end="",
            flush=True,
        )

        if self.verbose:
            print()

    def finish(self, stats: dict):
        """Finish progress reporting."""
        print("\n")
        elapsed_seconds = (datetime.now() - self.start_time).total_seconds()

        print(f"{'=' * 60}")
        print("  Ingestion Complete!")
        print(f"{'=' * 60}\n")
        print(f"  Files processed:  {stats['files_processed']}")
        print(f"  Files failed:     {stats['files_failed']}")
        print(f"  Chunks stored:    {stats['chunks_stored']}")
        print(f"  Time elapsed:     {elapsed_seconds:.1f}s")

        if stats["chunks_stored"] > 0 and elapsed_seconds > 0:
            rate = stats["chunks_stored"] / elapsed_seconds
            print(f"  Ingestion rate:   {rate:.1f} chunks/sec")

        print(f"\n{'=' * 60}\n")

        if stats["files_failed"] > 0:
            print(f"Warning: {stats['files_failed']} file(s) failed to ingest.")
            print("   Check logs for details.\n")


async def ingest_files(paths, progress: ProgressReporter) -> dict:
    """Ingest each PDF in turn, continuing past failures."""
    services = build_services()
    stats = {"files_processed": 0, "files_failed": 0, "chunks_stored": 0}

    for path in paths:
        def on_progress(current, total, name=path.name):
            progress.update(name, current, total)

        try:
            result = await services.ingest.ingest_pdf(
                path.read_bytes(), path.name, progress_callback=on_progress
            )
        except (OSError, DocMindError) as e:
            stats["files_failed"] += 1
            logger.error("file_ingest_failed", path=str(path), error=str(e))
            continue

        stats["files_processed"] += 1
        stats["chunks_stored"] += result.count

    return stats


async def main():
    """Main entry point for ingest script."""
    parser = argparse.ArgumentParser(
        description="Ingest PDF files into the DocMind vector store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/ingest.py manual.pdf
  python scripts/ingest.py docs/*.pdf --verbose
  python scripts/ingest.py --seed
        """,
    )

    parser.add_argument("files", nargs="*", type=Path, help="PDF files to ingest")

    parser.add_argument(
        "--seed",
        action="store_true",
        help="Store the built-in sample sentences instead of files",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show verbose progress output",
    )

    args = parser.parse_args()

    if not args.files and not args.seed:
        parser.error("give at least one PDF file or --seed")

    progress = ProgressReporter(verbose=args.verbose)

    try:
        print("\nConfiguration:")
        print(f"   Pinecone index:   {config.PINECONE_INDEX}")
        print(f"   Embedding model:  {config.EMBEDDING_MODEL}")
        print(f"   Chunk size:       {config.CHUNK_SIZE} chars")
        print(f"   Chunk overlap:    {config.CHUNK_OVERLAP} chars")
        print(f"   Batch size:       {config.INGEST_BATCH_SIZE}")

        if args.seed:
            count = await build_services().ingest.seed()
            print(f"\nSeeded {count} sample records.\n")
            return

        progress.start(f"Ingesting {len(args.files)} file(s)")
        stats = await ingest_files(args.files, progress)
        progress.finish(stats)

        if stats["files_failed"] > 0:
            sys.exit(1)

    except KeyboardInterrupt:
        print("\n\nIngestion cancelled by user.\n")
        sys.exit(1)

    except Exception as e:
        print(f"\nError: {e}\n")
        logger.error("ingest_script_failed", error=str(e), error_type=type(e).__name__)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
