"""Pipeline CLI Entry Point

Provides the command-line interface for running a file of article
submissions through the content pipeline. Handles argument parsing, logging
configuration, and orchestration of the run from raw Markdown articles to
storage-ready records with sanitized HTML and excerpts.

Usage:
    content-pipeline --input data/articles.json --output-dir output
"""

import argparse
import logging
import time
from pathlib import Path

from content_pipeline.config import DEFAULT_EXCERPT_LENGTH, LOG_DIR
from content_pipeline.pipeline import cleanup_old_runs, run_pipeline


def configure_logging(log_dir: Path = LOG_DIR) -> None:
    """Configure logging with both console and file output.

    Sets up:
      - Root logger at DEBUG level
      - Console handler at INFO level for user-facing messages
      - File handler at DEBUG level for detailed troubleshooting
      - Reduced verbosity for the Python-Markdown logger
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "pipeline.log"

    # Root logger
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    logging.getLogger("MARKDOWN").setLevel(logging.WARNING)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    # Console handler: high-level INFO+
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    # File handler: detailed DEBUG+
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    # Clear existing handlers to avoid duplicates if run multiple times
    logger.handlers.clear()
    logger.addHandler(console_handler)
    logger.addHandler(file_handler)


def main(argv=None) -> int:
    """
    CLI entrypoint for the article content pipeline.

    Parses command-line arguments, runs the pipeline end-to-end,
    and returns a Unix-style exit code (0 on success, non-zero on failure).
    """
    parser = argparse.ArgumentParser(
        description="Article content pipeline: Markdown -> sanitized HTML + excerpts"
    )
    parser.add_argument(
        "--input",
        type=Path,
        default=Path("data/articles.json"),
        help="Path to raw input JSON file.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("output"),
        help="Directory where output files will be written.",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Optional limit on number of articles to process.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Process articles but don't write any output files",
    )
    parser.add_argument(
        "--no-history",
        action="store_true",
        help="Overwrite output files instead of creating timestamped versions",
    )
    parser.add_argument(
        "--excerpt-length",
        type=int,
        default=DEFAULT_EXCERPT_LENGTH,
        help=f"Maximum excerpt length in characters (default: {DEFAULT_EXCERPT_LENGTH})",
    )
    parser.add_argument(
        "--keep-last",
        type=int,
        default=None,
        help="After the run, keep only the last N timestamped runs in the output directory",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=LOG_DIR,
        help="Directory for pipeline.log",
    )

    args = parser.parse_args(argv)
    if args.keep_last is not None and args.keep_last < 0:
        parser.error("--keep-last must be >= 0")

    configure_logging(args.log_dir)
    logger = logging.getLogger(__name__)

    logger.info("=== Starting article content pipeline ===")
    logger.info("Input: %s", args.input)
    logger.info("Output directory: %s", args.output_dir)
    logger.info("Limit: %s", args.limit if args.limit else "None (all articles)")
    logger.info("Dry_run: %s", args.dry_run)
    logger.info("Keep history: %s", not args.no_history)
    logger.info("Excerpt length: %d", args.excerpt_length)

    try:
        start_time = time.time()

        total_raw, stored_count, output_paths = run_pipeline(
            input_path=args.input,
            output_dir=args.output_dir,
            limit=args.limit,
            dry_run=args.dry_run,
            keep_history=not args.no_history,
            excerpt_length=args.excerpt_length,
        )

        if args.keep_last is not None and not args.dry_run:
            cleanup_old_runs(args.output_dir, keep_last_n=args.keep_last)

        elapsed_time = time.time() - start_time

        logger.info("=" * 70)
        logger.info("Pipeline completed successfully in %.2fs", elapsed_time)
        logger.info("")
        logger.info("Summary:")
        logger.info("  Input:      %s", args.input)
        logger.info("  Stored:     %d/%d articles", stored_count, total_raw)
        logger.info("")
        logger.info("Output files:")
        for name, path in output_paths.items():
            logger.info("  %-12s %s", f"{name}:", path)
        logger.info("=" * 70)

    except Exception as e:
        logger.exception("Pipeline failed with an unhandled exception: %s", e)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
