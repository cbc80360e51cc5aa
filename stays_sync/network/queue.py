"""
Rate-limited fan-out for detail requests.

Tasks run in batches of ``concurrency`` on a thread pool. A batch must drain
completely before the next one starts, and a fixed delay separates batches, so
the burst rate stays bounded without serializing the whole set.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Iterable, NamedTuple, Optional

import structlog

from stays_sync.errors import SyncTimeoutError
from stays_sync.metrics import detail_fetch_failures

logger = structlog.get_logger(__name__)


class TaskResult(NamedTuple):
    """Outcome of one queued task: either a value or the error that replaced it."""

    key: str
    value: Any = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Deadline:
    """
    Wall-clock budget for a whole sync run.

    Args:
        budget_seconds: Seconds allowed from construction
        clock: Monotonic clock (injected in tests)
    """

    def __init__(self, budget_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.budget_seconds = budget_seconds
        self._clock = clock
        self._expires_at = clock() + budget_seconds

    def remaining(self) -> float:
        return self._expires_at - self._clock()

    def expired(self) -> bool:
        return self.remaining() <= 0

    def check(self, phase: str) -> None:
        """Raise ``SyncTimeoutError`` if the budget is exhausted."""
        if self.expired():
            logger.error("sync_deadline_exceeded", phase=phase, budget_seconds=self.budget_seconds)
            raise SyncTimeoutError(phase, self.budget_seconds)


class RateLimitedQueue:
    """
    Bounded-concurrency executor with an inter-batch delay.

    Args:
        concurrency: Tasks in flight per batch
        delay_seconds: Pause between one batch draining and the next starting
        sleep: Sleep function (injected in tests)
    """

    def __init__(
        self,
        concurrency: int = 20,
        delay_seconds: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.concurrency = concurrency
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def run(
        self,
        keys: Iterable[str],
        task: Callable[[str], Any],
        resource: str,
        deadline: Optional[Deadline] = None,
    ) -> dict[str, TaskResult]:
        """
        Run ``task(key)`` for every unique key and wait for all of them.

        A task that raises is recorded as a failed ``TaskResult`` and does not
        affect the others. The deadline is checked before each batch.

        Args:
            keys: Task keys (duplicates are collapsed, first-seen order kept)
            task: Callable invoked with one key
            resource: Name used in logs and metrics
            deadline: Optional run budget

        Returns:
            dict mapping each key to its TaskResult, in input order

        Raises:
            SyncTimeoutError: If the deadline expires between batches
        """
        ordered = list(dict.fromkeys(keys))
        if not ordered:
            return {}

        batches = [
            ordered[i : i + self.concurrency] for i in range(0, len(ordered), self.concurrency)
        ]
        results: dict[str, TaskResult] = {}
        failures = 0

        with ThreadPoolExecutor(max_workers=self.concurrency) as pool:
            for index, batch in enumerate(batches):
                if deadline is not None:
                    deadline.check(f"{resource} fetch")
                if index > 0 and self.delay_seconds > 0:
                    self._sleep(self.delay_seconds)

                futures = {pool.submit(task, key): key for key in batch}
                for future in as_completed(futures):
                    key = futures[future]
                    try:
                        results[key] = TaskResult(key, value=future.result())
                    except Exception as err:
                        failures += 1
                        detail_fetch_failures.labels(resource=resource).inc()
                        logger.warning("task_failed", resource=resource, key=key, error=str(err))
                        results[key] = TaskResult(key, error=err)

        logger.info(
            "queue_drained",
            resource=resource,
            total=len(ordered),
            failed=failures,
            batches=len(batches),
        )
        return {key: results[key] for key in ordered}
