# pipeline/queue.py
"""
Buffered log writer: in-memory FIFO queue drained to the store in small
batches by a background asyncio task, with synchronous escalation for
entries that cannot wait for the next tick.

Write-path failures never reach the caller of ``submit``; logging is the
only observable effect.
"""
from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_QUEUE_SIZE = 10_000


class BufferedWriter(Generic[T]):
    """
    One instance per pipeline. Construct at process start, ``start()`` the
    timer, and ``stop()`` on shutdown to drain what is still queued.

    Overflow policy: when ``max_queue_size`` is reached the oldest queued
    entry is dropped and counted in ``dropped``.
    """

    def __init__(
        self,
        name: str,
        persist: Callable[[T], Awaitable[Any]],
        *,
        flush_interval: float,
        batch_size: int,
        max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE,
        escalate: Callable[[T], bool] | None = None,
        double_write: bool = True,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if max_queue_size < 1:
            raise ValueError("max_queue_size must be >= 1")

        self.name = name
        self.flush_interval = flush_interval
        self.batch_size = batch_size
        self.max_queue_size = max_queue_size
        self.double_write = double_write

        self._persist = persist
        self._escalate = escalate or (lambda entry: False)
        self._queue: deque[T] = deque()
        self._flushing = False
        self._task: asyncio.Task | None = None
        self._stop_requested = asyncio.Event()

        self.dropped = 0
        self.failed = 0

    # ─────────────────────────────────────────────
    # state
    # ─────────────────────────────────────────────
    @property
    def pending(self) -> int:
        return len(self._queue)

    @property
    def is_flushing(self) -> bool:
        return self._flushing

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ─────────────────────────────────────────────
    # write path
    # ─────────────────────────────────────────────
    async def submit(self, entry: T) -> None:
        """Queue ``entry``; escalated entries are also written before returning."""
        escalated = False
        try:
            escalated = self._escalate(entry)
            if escalated and not self.double_write:
                if await self._write_now(entry):
                    return
            self._enqueue(entry)
        except Exception as exc:
            logger.error("[%s] Failed to queue log entry: %s", self.name, exc)
            return

        if escalated and self.double_write:
            await self._write_now(entry)

    def _enqueue(self, entry: T) -> None:
        if len(self._queue) >= self.max_queue_size:
            self._queue.popleft()
            self.dropped += 1
            logger.warning(
                "[%s] Queue full (%d), dropped oldest entry (%d dropped so far)",
                self.name,
                self.max_queue_size,
                self.dropped,
            )
        self._queue.append(entry)

    async def _write_now(self, entry: T) -> bool:
        """Synchronous escalation with a single direct retry."""
        try:
            await self._persist(entry)
            return True
        except Exception as exc:
            logger.error("[%s] Immediate write failed, retrying once: %s", self.name, exc)

        try:
            await self._persist(entry)
            return True
        except Exception as exc:
            self.failed += 1
            logger.error("[%s] Immediate write retry failed, giving up: %s", self.name, exc)
            return False

    async def flush(self) -> int:
        """
        Persist up to ``batch_size`` queued entries in FIFO order.
        A call made while another flush is in flight is a no-op.
        """
        if self._flushing or not self._queue:
            return 0

        self._flushing = True
        written = 0
        try:
            count = min(self.batch_size, len(self._queue))
            batch = [self._queue.popleft() for _ in range(count)]

            for entry in batch:
                try:
                    await self._persist(entry)
                    written += 1
                except Exception as exc:
                    # dropped, not retried
                    self.failed += 1
                    logger.error("[%s] Failed to persist queued entry: %s", self.name, exc)

            logger.debug("[%s] Flushed %d/%d entries, %d pending", self.name, written, count, len(self._queue))
        finally:
            self._flushing = False

        return written

    async def drain(self) -> int:
        """Flush until the queue is empty or a pass makes no progress."""
        total = 0
        while self._queue and not self._flushing:
            before = len(self._queue)
            total += await self.flush()
            if len(self._queue) >= before:
                break
        return total

    # ─────────────────────────────────────────────
    # lifecycle
    # ─────────────────────────────────────────────
    async def run_loop(self) -> None:
        logger.info(
            "[%s] Writer starting (interval=%.1fs batch=%d)",
            self.name,
            self.flush_interval,
            self.batch_size,
        )
        while not self._stop_requested.is_set():
            try:
                await asyncio.wait_for(self._stop_requested.wait(), timeout=self.flush_interval)
                break
            except asyncio.TimeoutError:
                pass

            try:
                await self.flush()
            except Exception as exc:
                logger.exception("[%s] Writer loop error: %s", self.name, exc)

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_requested.clear()
        self._task = asyncio.get_running_loop().create_task(
            self.run_loop(), name=f"{self.name}-writer"
        )

    async def stop(self, drain: bool = True) -> None:
        # an in-flight flush finishes before the loop exits
        task, self._task = self._task, None
        if task is not None:
            self._stop_requested.set()
            await task

        if drain:
            written = await self.drain()
            logger.info("[%s] Writer stopped, drained %d entries", self.name, written)
        if self._queue:
            logger.warning("[%s] Writer stopped with %d entries unpersisted", self.name, len(self._queue))
