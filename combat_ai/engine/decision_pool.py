"""Worker pool for boss tactic synthesis."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DecisionWorker:
    """Runs synthesis jobs off the tick when configured with more than one worker.

    Jobs receive an immutable SituationContext and return a Tactic; the
    result is collected by the owning boss on a later tick.  With
    ``num_workers <= 1`` jobs run inline and the returned future is already
    resolved, so the decision applies in the same tick.
    """

    __slots__ = ("_num_workers", "_executor")

    def __init__(self, num_workers: int = 1) -> None:
        self._num_workers = num_workers
        self._executor: ThreadPoolExecutor | None = None
        if num_workers > 1:
            self._executor = ThreadPoolExecutor(
                max_workers=num_workers,
                thread_name_prefix="decision-worker",
            )

    @property
    def inline(self) -> bool:
        return self._executor is None

    def submit(self, fn: Callable[..., T], *args) -> Future[T]:
        # Fast path: single-worker mode, run inline with no thread overhead
        if self._executor is None:
            future: Future[T] = Future()
            try:
                future.set_result(fn(*args))
            except Exception as exc:
                future.set_exception(exc)
            return future
        return self._executor.submit(fn, *args)

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            logger.debug("Decision worker pool shut down")
