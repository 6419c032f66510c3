#!/usr/bin/env python
"""Index talk transcripts into Pinecone.

Usage:
    python scripts/index_talks.py              # Resume from progress checkpoint
    python scripts/index_talks.py --restart    # Ignore checkpoint, start over
    python scripts/index_talks.py --verbose    # Show detailed progress
"""
import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from talkrag import config
from talkrag.config import Settings
from talkrag.errors import ConfigurationError, RetryExhausted
from talkrag.logging_config import configure_logging
from talkrag.rag.dataset import Record
from talkrag.rag.ingest import IngestPipeline
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

    def update(self, current: int, total: int, record: Record):
        """Update progress."""
        percentage = (current / total) * 100 if total > 0 else 0
        bar_length = 40
        filled = int(bar_length * current / total) if total > 0 else 0
        bar = "█" * filled + "░" * (bar_length - filled)

        print(
            f"\r  [{bar}] {percentage:5.1f}% ({current}/{total}) {record.title[:30]:<30}",
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
        print("  Indexing Complete!")
        print(f"{'=' * 60}\n")
        print(f"  Started at row:      {stats['start_index']}")
        print(f"  Talks processed:     {stats['records_processed']}")
        print(f"  Talks skipped:       {stats['records_skipped']} (no transcript)")
        print(f"  Chunks created:      {stats['chunks_created']}")
        print(f"  Vectors upserted:    {stats['vectors_upserted']}")
        print(f"  Checkpoint:          {stats['checkpoint']}")
        print(f"  Time elapsed:        {elapsed_seconds:.1f}s")

        if stats["vectors_upserted"] > 0 and elapsed_seconds > 0:
            rate = stats["vectors_upserted"] / elapsed_seconds
            print(f"  Indexing rate:       {rate:.1f} vectors/sec")

        print(f"\n{'=' * 60}\n")


async def main():
    """Main entry point for the indexing script."""
    parser = argparse.ArgumentParser(
        description="Index talk transcripts into the Pinecone index",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/index_talks.py              # Resume from checkpoint
  python scripts/index_talks.py --restart    # Start over from the first row
  python scripts/index_talks.py --verbose    # Show detailed progress
        """,
    )

    parser.add_argument(
        "--restart",
        action="store_true",
        help="Delete the progress checkpoint before indexing",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show verbose progress output",
    )

    parser.add_argument(
        "--dataset",
        type=Path,
        default=None,
        help=f"CSV dataset (default: {config.DATASET_PATH})",
    )

    args = parser.parse_args()

    configure_logging("DEBUG" if args.verbose else config.LOG_LEVEL)
    progress = ProgressReporter(verbose=args.verbose)

    try:
        settings = Settings.from_env()

        print("\n📋 Configuration:")
        print(f"   Dataset:          {args.dataset or settings.dataset_path}")
        print(f"   Checkpoint file:  {settings.checkpoint_path}")
        print(f"   Pinecone index:   {settings.pinecone_index_name}")
        print(f"   Embedding model:  {settings.embedding_model}")
        print(f"   Chunk size:       {settings.chunk_size} chars")
        print(f"   Chunk overlap:    {settings.chunk_overlap} chars")

        pipeline = IngestPipeline.from_settings(settings)
        if args.dataset:
            pipeline.dataset_path = args.dataset

        if args.restart:
            print("\n⚠️  Restart mode: the progress checkpoint will be deleted!")
            print("   Press Ctrl+C within 3 seconds to cancel...")
            await asyncio.sleep(3)
            pipeline.checkpoint.clear()

        progress.start("Indexing Talks")

        stats = await pipeline.run(
            progress_callback=progress.update if not args.verbose else None,
        )

        progress.finish(stats)

    except KeyboardInterrupt:
        print("\n\n⚠️  Indexing cancelled by user.\n")
        sys.exit(1)

    except ConfigurationError as e:
        print(f"\n❌ Configuration error: {e}\n")
        sys.exit(1)

    except FileNotFoundError as e:
        print(f"\n❌ Error: {e}\n")
        sys.exit(1)

    except RetryExhausted as e:
        print(f"\n❌ Indexing aborted after {e.attempts} attempts: {e}")
        print("   Re-run the script to resume from the last checkpoint.\n")
        logger.error("index_run_aborted", error=str(e), error_type=type(e).__name__)
        sys.exit(1)

    except Exception as e:
        print(f"\n❌ Error: {e}\n")
        logger.error("index_script_failed", error=str(e), error_type=type(e).__name__)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
