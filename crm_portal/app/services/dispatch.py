"""Chunked, paced dispatch of outbound messages.

The loop is sequential and blocking. It pauses between chunks to stay under
the mail provider's rate limit, never retries, and turns a failed chunk into
a failed result for each of its recipients before moving on.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class DispatchResult:
    recipient: object
    success: bool
    provider_id: Optional[str] = None
    error: Optional[str] = None


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    if size <= 0:
        raise ValueError("Chunk size must be positive")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def dispatch_in_batches(
    items: Sequence[T],
    send_chunk: Callable[[List[T]], List[Optional[str]]],
    *,
    batch_size: int,
    delay_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
) -> List[DispatchResult]:
    """Send items chunk by chunk and return one result per item, in order.

    send_chunk returns one provider id per item in the chunk.
    """
    results: List[DispatchResult] = []
    chunks = list(chunked(items, batch_size))
    for index, chunk in enumerate(chunks):
        if index > 0 and delay_seconds > 0:
            sleep(delay_seconds)
        try:
            provider_ids = send_chunk(chunk)
        except Exception as exc:
            logger.exception("Chunk %d/%d of %d recipients failed", index + 1, len(chunks), len(chunk))
            results.extend(DispatchResult(recipient=item, success=False, error=str(exc)) for item in chunk)
            continue
        provider_ids = list(provider_ids or [])
        provider_ids.extend([None] * (len(chunk) - len(provider_ids)))
        results.extend(
            DispatchResult(recipient=item, success=True, provider_id=pid) for item, pid in zip(chunk, provider_ids)
        )
        logger.info("Chunk %d/%d sent (%d recipients)", index + 1, len(chunks), len(chunk))
    return results
