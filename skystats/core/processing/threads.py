"""
Spread independent work over a fixed pool of threads.

The work is a set of ``num_actions`` independent actions identified by
their index (for example output pixels). The indices are split into
contiguous ranges, one per thread, and every range is handed to the
worker once. All threads are joined before :func:`spin_off` returns.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, List, Optional

from ..base.exceptions import ProcessingError, ValidationError
from ..config import get_config

logger = logging.getLogger(__name__)


def distribute(num_actions: int, num_threads: int) -> List[range]:
    """Split ``range(num_actions)`` into at most ``num_threads`` contiguous ranges.

    The first ``num_actions % num_threads`` ranges hold one extra index.
    Empty ranges are not returned.
    """
    if num_threads <= 0:
        raise ValidationError("'num_threads' must be positive", field="num_threads",
                              value=num_threads)
    base, extra = divmod(num_actions, num_threads)
    ranges = []
    start = 0
    for thread in range(num_threads):
        stop = start + base + (1 if thread < extra else 0)
        if stop > start:
            ranges.append(range(start, stop))
        start = stop
    return ranges


def spin_off(worker: Callable[[range], Any], num_actions: int,
             num_threads: Optional[int] = None) -> List[Any]:
    """Run ``worker`` over all action indices on a pool of threads.

    Parameters
    ----------
    worker : callable
        Called once per partition with a ``range`` of action indices.
        Partitions never overlap, so workers may write to disjoint parts
        of a shared output without locking.
    num_actions : int
        Total number of actions.
    num_threads : int, optional
        Number of threads, defaults to the configured ``num_threads``.
        With one thread (or a single partition) the worker runs in the
        calling thread.

    Returns
    -------
    list
        Return value of the worker for every partition, in index order.

    Raises
    ------
    ProcessingError
        If any worker raised; the first failure is kept as the cause.
    """
    if num_threads is None:
        num_threads = get_config().num_threads
    ranges = distribute(num_actions, num_threads)
    if not ranges:
        return []

    if len(ranges) == 1:
        try:
            return [worker(ranges[0])]
        except Exception as e:
            raise ProcessingError(f"Worker failed on actions {ranges[0].start}-"
                                  f"{ranges[0].stop - 1}: {e}", step="spin_off",
                                  cause=e) from e

    logger.debug("Spinning off %d actions on %d threads", num_actions, len(ranges))
    results: List[Any] = [None] * len(ranges)
    failures = []
    with ThreadPoolExecutor(max_workers=len(ranges)) as executor:
        futures = {executor.submit(worker, r): i for i, r in enumerate(ranges)}
        for future in as_completed(futures):
            i = futures[future]
            try:
                results[i] = future.result()
            except Exception as e:
                logger.error("Worker on actions %d-%d failed: %s",
                             ranges[i].start, ranges[i].stop - 1, e)
                failures.append((i, e))

    if failures:
        i, first = min(failures, key=lambda failure: failure[0])
        raise ProcessingError(
            f"{len(failures)} of {len(ranges)} workers failed; first failure on "
            f"actions {ranges[i].start}-{ranges[i].stop - 1}: {first}",
            step="spin_off", cause=first,
        ) from first
    return results
