"""Command-line interface for doc_fetcher."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

from tqdm import tqdm

from . import __version__
from .batch import BatchSequencer, format_event
from .capabilities import headless_browser_available
from .config import FetcherConfig
from .logging_config import setup_logging, write_batch_summary
from .models import BatchSummary, EventType, ResultKind
from .orchestrator import Converter

logger = logging.getLogger(__name__)


def read_url_file(path: Path) -> List[str]:
    """One URL per line; blank lines and ``#`` comments are skipped."""
    with open(path, 'r', encoding='utf-8') as f:
        return [line.strip() for line in f if line.strip() and not line.lstrip().startswith('#')]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='doc-fetcher',
        description='doc-fetcher - Convert document URLs into PDFs and Markdown',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Download an arXiv paper
  doc-fetcher https://arxiv.org/abs/1706.03762

  # Convert a webpage (PDF if Chrome is available, Markdown otherwise)
  doc-fetcher https://example.org/blog/post

  # List the papers on an arXiv listing page, then download all of them
  doc-fetcher https://arxiv.org/list/cs.AI/recent
  doc-fetcher --download-listings https://arxiv.org/list/cs.AI/recent

  # Read URLs from a file, one per line
  doc-fetcher --input urls.txt --output ./papers

  # Emit progress as server-sent events
  doc-fetcher --stream https://arxiv.org/abs/1706.03762
        """
    )

    parser.add_argument('urls', nargs='*', help='URLs to convert')
    parser.add_argument('-i', '--input', type=str, help='Input file with one URL per line')
    parser.add_argument('-o', '--output', type=str, help='Output directory (default: ./downloads)')
    parser.add_argument('-c', '--config', type=str, help='Path to config file (default: config.yaml)')
    parser.add_argument(
        '--format',
        choices=['markdown', 'md', 'text', 'txt'],
        default='markdown',
        help='Format for pages converted by content extraction (default: markdown)'
    )
    parser.add_argument(
        '--no-headless',
        action='store_true',
        help='Do not render webpages with headless Chrome'
    )
    parser.add_argument(
        '--stream',
        action='store_true',
        help='Print progress events as server-sent events instead of a progress bar'
    )
    parser.add_argument(
        '--preview',
        action='store_true',
        help='With several arXiv paper URLs, only list them instead of downloading'
    )
    parser.add_argument(
        '--download-listings',
        action='store_true',
        help='Download every paper found on arXiv listing pages'
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    parser.add_argument('--log-file', type=str, help='Also log to this file and write a batch summary next to it')
    parser.add_argument('--version', action='version', version=f'doc-fetcher {__version__}')
    return parser


def run_with_progress(sequencer: BatchSequencer, urls: List[str]) -> BatchSummary:
    """Process a batch behind a tqdm progress bar."""
    summary = BatchSummary(results=[], success_count=0)
    failures = 0
    with tqdm(total=len(urls), desc="Converting", unit="url") as pbar:
        for event in sequencer.iter_events(urls):
            if event.type is EventType.PROGRESS:
                pbar.set_description(f"Converting {event.current}/{event.total}")
            elif event.type is EventType.RESULT:
                if not event.result.success:
                    failures += 1
                pbar.update(1)
                pbar.set_postfix_str(f"✓ {event.current - failures} ✗ {failures}", refresh=False)
            else:
                summary = BatchSummary(results=list(event.results), success_count=event.success_count)
    return summary


def run_streaming(sequencer: BatchSequencer, urls: List[str]) -> BatchSummary:
    """Process a batch and print each event as ``data: {json}``."""
    summary = BatchSummary(results=[], success_count=0)
    for event in sequencer.iter_events(urls):
        sys.stdout.write(format_event(event))
        sys.stdout.flush()
        if event.type is EventType.COMPLETE:
            summary = BatchSummary(results=list(event.results), success_count=event.success_count)
    return summary


def print_results(summary: BatchSummary, output_dir: Path):
    print("\n" + "=" * 80)
    print("RESULTS")
    print("=" * 80)
    for index, result in enumerate(summary.results, start=1):
        if result.success:
            print(f"✓ {index:2d}. [{result.kind.value}] {result.url}")
            if result.file_path:
                print(f"      → {result.file_path}")
            if result.kind is ResultKind.PREPRINT_LISTING and result.items is not None:
                for entry in result.items:
                    print(f"      - {entry.id}  {entry.title}")
            if result.kind is ResultKind.WEBPAGE_GUIDANCE and result.guidance:
                for alternative in result.guidance.alternatives:
                    print(f"      {alternative}")
        else:
            print(f"✗ {index:2d}. {result.url}")
            print(f"      Error: {result.error}")
            if result.suggestion:
                print(f"      Suggestion: {result.suggestion}")

    total = summary.total
    print("-" * 80)
    print(f"Total: {total}")
    if total:
        print(f"✓ Success: {summary.success_count} ({summary.success_count / total * 100:.1f}%)")
        print(f"✗ Failed:  {total - summary.success_count}")
    print("=" * 80)
    print(f"\nAll files in: {output_dir}\n")


def main():
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    setup_logging(
        log_file=Path(args.log_file) if args.log_file else None,
        console_level=logging.DEBUG if args.verbose else logging.WARNING,
    )

    urls: List[str] = []
    if args.input:
        input_path = Path(args.input)
        if not input_path.exists():
            print(f"Error: Input file not found: {args.input}", file=sys.stderr)
            sys.exit(1)
        urls = read_url_file(input_path)
    if args.urls:
        urls.extend(args.urls)

    if not urls:
        parser.print_help()
        sys.exit(1)

    config = FetcherConfig.load(args.config, output_dir=args.output)
    headless = False if args.no_headless else headless_browser_available()
    converter = Converter(config, headless_available=headless, fmt=args.format)

    if args.preview:
        selection = converter.plan(urls)
        if selection is not None:
            if args.stream:
                print(json.dumps(selection.to_dict(), ensure_ascii=False))
            else:
                print(f"\n{selection.message}\n")
                for entry in selection.items:
                    print(f"  {entry.id:20s} {entry.pdf_url}")
                print()
            return

    sequencer = BatchSequencer(converter)
    if args.stream:
        summary = run_streaming(sequencer, urls)
    else:
        print(f"\n{'=' * 80}")
        print(f"doc-fetcher v{__version__}")
        print(f"{'=' * 80}")
        print(f"URLs to convert: {len(urls)}")
        print(f"Output directory: {config.output_dir}")
        print(f"Headless rendering: {'on' if headless else 'off'}")
        print(f"{'=' * 80}\n")
        summary = run_with_progress(sequencer, urls)

    if args.download_listings:
        summary = download_listings(sequencer, summary)

    if not args.stream:
        print_results(summary, config.output_dir)

    if args.log_file:
        summary_file = write_batch_summary(summary.results, Path(args.log_file).parent)
        logger.info(f"Batch summary written to {summary_file}")

    sys.exit(0 if summary.success_count > 0 else 1)


def download_listings(sequencer: BatchSequencer, summary: BatchSummary) -> BatchSummary:
    """Download the papers of every successful listing result and append them."""
    results = list(summary.results)
    success_count = summary.success_count
    for result in summary.results:
        if not (result.success and result.kind is ResultKind.PREPRINT_LISTING and result.items):
            continue
        logger.info(f"Downloading {len(result.items)} papers from {result.url}")
        papers = sequencer.process_all([entry.url for entry in result.items])
        results.extend(papers.results)
        success_count += papers.success_count
    return BatchSummary(results=results, success_count=success_count)


if __name__ == '__main__':
    main()
