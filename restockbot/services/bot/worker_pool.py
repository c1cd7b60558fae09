"""Multi-account worker pool - one scheduler per account, run in lockstep rounds."""

import asyncio
import logging
from typing import List, Sequence, TypeVar

from ...core.exceptions import RestockBotError
from .scheduler import PassResult, Scheduler

T = TypeVar("T")
logger = logging.getLogger(__name__)


def partition(items: Sequence[T], slices: int) -> List[List[T]]:
    """
    Deal ``items`` round-robin into ``slices`` disjoint lists.

    Empty slices are dropped, so fewer items than slices yields fewer lists.
    """
    if slices < 1:
        raise ValueError("slices must be at least 1")
    buckets: List[List[T]] = [[] for _ in range(slices)]
    for index, item in enumerate(items):
        buckets[index % slices].append(item)
    return [bucket for bucket in buckets if bucket]


class WorkerPool:
    """
    Runs several schedulers side by side.

    Every worker owns its own driver, session and API client; the only
    shared input is the read-only product list it was sliced from. Each
    round runs one pass on every worker concurrently, joins the results,
    then the whole pool sleeps for the interval.
    """

    def __init__(self, workers: List[Scheduler], interval: float, shutdown_event: asyncio.Event):
        """
        Initialize worker pool.

        Args:
            workers: One scheduler per account
            interval: Seconds to sleep between rounds
            shutdown_event: Set to stop after the current round
        """
        if not workers:
            raise ValueError("WorkerPool needs at least one worker")
        self.workers = list(workers)
        self.interval = interval
        self.shutdown_event = shutdown_event
        self.rounds = 0
        logger.info(f"WorkerPool initialized with {len(self.workers)} workers")

    @property
    def active_workers(self) -> List[Scheduler]:
        return [w for w in self.workers if w.pending]

    @staticmethod
    def _raise_first_error(results: Sequence[object]) -> None:
        errors = [r for r in results if isinstance(r, BaseException)]
        if not errors:
            return
        for error in errors[1:]:
            logger.error(f"Additional worker failure: {error}")
        raise errors[0]

    async def run_round(self) -> List[PassResult]:
        """
        Run one pass on every worker that still has targets.

        Raises:
            RestockBotError: The first worker failure of the round
        """
        self.rounds += 1
        workers = self.active_workers
        results = await asyncio.gather(*(w.run_pass() for w in workers), return_exceptions=True)
        self._raise_first_error(results)
        return [r for r in results if not isinstance(r, BaseException)]

    async def _wait_or_shutdown(self, seconds: float) -> bool:
        if self.shutdown_event.is_set():
            return True
        try:
            await asyncio.wait_for(self.shutdown_event.wait(), timeout=seconds)
            return True
        except asyncio.TimeoutError:
            return False

    async def run(self) -> None:
        """Sign every worker in, then run rounds until all queues are empty or shutdown."""
        try:
            results = await asyncio.gather(
                *(w.establish_session() for w in self.workers), return_exceptions=True
            )
            self._raise_first_error(results)

            while self.active_workers:
                await self.run_round()
                if not self.active_workers:
                    break
                if await self._wait_or_shutdown(self.interval):
                    logger.info("Shutdown requested, stopping worker pool")
                    break
        except RestockBotError as e:
            logger.error(f"Worker pool stopped: {e.message}")
            raise
        finally:
            await asyncio.gather(*(w.close() for w in self.workers), return_exceptions=True)
        logger.info(f"WorkerPool finished after {self.rounds} round(s)")
