"""
Logging configuration for doc_fetcher.

Provides structured logging to both file and console with configurable levels.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from .models import ConversionResult, ResultKind


def setup_logging(
    log_file: Optional[Path] = None,
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    Setup logging for doc_fetcher.

    Args:
        log_file: Path to log file (if None, only console logging)
        console_level: Logging level for console output
        file_level: Logging level for file output
        format_string: Custom format string (if None, uses default)

    Returns:
        Configured logger
    """
    logger = logging.getLogger('doc_fetcher')
    logger.setLevel(logging.DEBUG)  # Capture everything, handlers filter

    logger.handlers.clear()

    if format_string is None:
        format_string = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    formatter = logging.Formatter(format_string, datefmt='%Y-%m-%d %H:%M:%S')

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(file_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")

    return logger


def write_batch_summary(results: Iterable[ConversionResult], log_dir: Path) -> Path:
    """
    Create a summary log file for a batch conversion.

    Args:
        results: ConversionResult objects in input order
        log_dir: Directory to save summary log

    Returns:
        Path of the written summary file
    """
    results = list(results)
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    summary_file = log_dir / f"batch_summary_{timestamp}.log"

    total = len(results)
    success = sum(1 for r in results if r.success)
    guidance = sum(1 for r in results if r.success and r.kind is ResultKind.WEBPAGE_GUIDANCE)

    with open(summary_file, 'w', encoding='utf-8') as f:
        f.write("doc_fetcher - Batch Summary\n")
        f.write(f"Generated: {datetime.now().isoformat()}\n")
        f.write("=" * 80 + "\n\n")

        f.write("STATISTICS\n")
        f.write("-" * 80 + "\n")
        f.write(f"Total: {total}\n")
        f.write(f"Success: {success}\n")
        f.write(f"Guidance only: {guidance}\n")
        f.write(f"Failures: {total - success}\n")
        f.write(f"Success rate: {(success / total * 100) if total > 0 else 0:.1f}%\n")
        f.write("\n")

        f.write("RESULTS\n")
        f.write("-" * 80 + "\n")
        for index, r in enumerate(results, start=1):
            if r.success:
                f.write(f"✓ {index}. [{r.kind.value}] {r.url}\n")
                if r.file_path:
                    f.write(f"  Path: {r.file_path}\n")
                if r.items is not None:
                    f.write(f"  Papers: {len(r.items)}\n")
            else:
                f.write(f"✗ {index}. {r.url}\n")
                f.write(f"  Reason: {r.error}\n")
                if r.suggestion:
                    f.write(f"  Suggestion: {r.suggestion}\n")
            f.write("\n")

    return summary_file
