"""
Batch Sequencer

Processes a list of URLs one after another and reports progress as a
stream of events:

    progress(1/n) → result(1/n) → [pause] → progress(2/n) → ... → complete

Items never run concurrently, and a pause (``pacing``) separates
consecutive items to stay polite to the upstream hosts. A failing item
yields a failed result and the batch carries on.

A consumer that wants to stop early closes the generator returned by
``iter_events``; no further item is started after that.
"""

import json
import logging
import time
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from .models import BatchEvent, BatchSummary, ConversionResult, EventType, ItemState

logger = logging.getLogger(__name__)

EVENT_PREFIX = "data: "


def format_event(event: BatchEvent) -> str:
    """
    Frame an event for a server-sent event stream.

    ``data: {json}`` followed by a blank line.
    """
    return f"{EVENT_PREFIX}{json.dumps(event.to_dict(), ensure_ascii=False)}\n\n"


class BatchSequencer:
    """
    Sequential batch processing with progress events.

    Args:
        converter: Object with ``resolve(url) -> ConversionResult``
                   (normally a Converter)
        pacing: Seconds to wait between items (default: the converter's
                ``batch_pacing`` setting, else 1.0)
        sleep: Sleep function, replaceable in tests
    """

    def __init__(
        self,
        converter,
        pacing: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.converter = converter
        if pacing is None:
            config = getattr(converter, 'config', None)
            pacing = getattr(config, 'batch_pacing', 1.0)
        self.pacing = max(0.0, float(pacing))
        self.sleep = sleep
        self.states: Dict[int, ItemState] = {}

    def _resolve(self, url: str) -> ConversionResult:
        try:
            return self.converter.resolve(url)
        except Exception as e:
            logger.exception(f"✗ Unexpected error processing {url}")
            return ConversionResult.failure(url, f"Unexpected error: {e}")

    def iter_events(self, urls: Sequence[str]) -> Iterator[BatchEvent]:
        """
        Process ``urls`` in order, yielding events as work progresses.

        Yields, per item, a progress event before and a result event after
        processing, then one complete event with all results.
        """
        urls = list(urls)
        total = len(urls)
        results: List[ConversionResult] = []
        success_count = 0
        self.states = {index: ItemState.PENDING for index in range(total)}

        logger.info(f"Starting batch of {total} URLs")
        for index, url in enumerate(urls):
            current = index + 1
            if index > 0 and self.pacing > 0:
                self.sleep(self.pacing)

            self.states[index] = ItemState.IN_PROGRESS
            yield BatchEvent(type=EventType.PROGRESS, current=current, total=total, url=url)

            result = self._resolve(url)
            results.append(result)
            if result.success:
                success_count += 1
                self.states[index] = ItemState.SUCCEEDED
            else:
                self.states[index] = ItemState.FAILED
            logger.info(f"[{current}/{total}] {result!r}")

            yield BatchEvent(type=EventType.RESULT, current=current, total=total, index=index, result=result)

        logger.info(f"Batch complete: {success_count}/{total} succeeded")
        yield BatchEvent(
            type=EventType.COMPLETE,
            current=total,
            total=total,
            results=results,
            success_count=success_count,
        )

    def process_all(
        self,
        urls: Sequence[str],
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> BatchSummary:
        """
        Process ``urls`` and return all results at once.

        Args:
            urls: URLs in the order they should be processed
            progress_callback: Optional callback(completed, total)

        Returns:
            BatchSummary with one result per URL, in input order
        """
        summary = BatchSummary(results=[], success_count=0)
        for event in self.iter_events(urls):
            if event.type is EventType.RESULT and progress_callback is not None:
                progress_callback(event.current, event.total)
            elif event.type is EventType.COMPLETE:
                summary = BatchSummary(results=list(event.results), success_count=event.success_count)
        return summary
