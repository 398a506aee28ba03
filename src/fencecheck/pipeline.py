"""Bounded concurrent execution with a serialized output channel."""

from __future__ import annotations

import asyncio
import logging
import sys
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TextIO, TypeVar

from fencecheck.constants import PROGRESS_CLEAR_WIDTH, UnitOutcome

logger = logging.getLogger(__name__)

TItem = TypeVar("TItem")
TOutput = TypeVar("TOutput")


@dataclass
class UnitResult(Generic[TOutput]):
    """Outcome of one unit of work."""

    index: int
    output: TOutput | None
    duration_ms: float
    status: UnitOutcome
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.status == UnitOutcome.COMPLETED


class BoundedScheduler:
    """Run one async unit per item with at most ``limit`` in flight.

    Admission is FIFO (``asyncio.Semaphore`` wakes waiters in order).
    Results come back in input order regardless of completion order.
    A failing unit is captured in its :class:`UnitResult` and never
    cancels its siblings.
    """

    def __init__(self, limit: int) -> None:
        if limit < 1:
            msg = f"concurrency limit must be >= 1, got {limit}"
            raise ValueError(msg)
        self.limit = limit
        self.in_flight = 0
        self.peak_in_flight = 0

    async def run(
        self,
        items: Sequence[TItem],
        worker: Callable[[TItem, int], Awaitable[TOutput]],
    ) -> list[UnitResult[TOutput]]:
        if not items:
            return []

        semaphore = asyncio.Semaphore(self.limit)

        async def _run_unit(idx: int, item: TItem) -> UnitResult[TOutput]:
            async with semaphore:
                self.in_flight += 1
                self.peak_in_flight = max(
                    self.peak_in_flight, self.in_flight
                )
                start = time.monotonic()
                try:
                    output = await worker(item, idx)
                except Exception as exc:
                    logger.warning(
                        "event=unit_failed index=%d error=%s", idx, exc
                    )
                    return UnitResult(
                        index=idx,
                        output=None,
                        duration_ms=(time.monotonic() - start) * 1000,
                        status=UnitOutcome.FAILED,
                        error=exc,
                    )
                finally:
                    self.in_flight -= 1
                return UnitResult(
                    index=idx,
                    output=output,
                    duration_ms=(time.monotonic() - start) * 1000,
                    status=UnitOutcome.COMPLETED,
                )

        return list(
            await asyncio.gather(
                *(_run_unit(i, item) for i, item in enumerate(items))
            )
        )


class OutputChannel:
    """Many producers, one consumer: console output in enqueue order.

    ``emit`` never blocks and may be called from any unit; a single
    drain task writes each record whole, so concurrent producers can
    never interleave their lines.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._queue: asyncio.Queue[tuple[str, bool] | None] = (
            asyncio.Queue()
        )
        self._consumer: asyncio.Task[None] | None = None
        self._interactive = _is_tty(self._stream)
        self._progress_shown = False

    async def __aenter__(self) -> OutputChannel:
        self.start()
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.close()

    def start(self) -> None:
        if self._consumer is None:
            self._consumer = asyncio.create_task(self._drain())

    def emit(self, text: str = "") -> None:
        """Queue a record; it is written followed by a newline."""
        self._queue.put_nowait((text, False))

    def progress(self, text: str) -> None:
        """Queue a transient progress line (TTY streams only)."""
        if self._interactive:
            self._queue.put_nowait((text, True))

    async def close(self) -> None:
        """Drain everything queued so far and stop the consumer."""
        if self._consumer is None:
            return
        self._queue.put_nowait(None)
        await self._consumer
        self._consumer = None

    async def _drain(self) -> None:
        while True:
            item = await self._queue.get()
            if item is None:
                break
            text, transient = item
            if self._progress_shown:
                self._stream.write(" " * PROGRESS_CLEAR_WIDTH + "\r")
                self._progress_shown = False
            if transient:
                self._stream.write(text + "\r")
                self._progress_shown = True
            else:
                self._stream.write(text + "\n")
        if self._progress_shown:
            self._stream.write(" " * PROGRESS_CLEAR_WIDTH + "\r")
            self._progress_shown = False
        self._stream.flush()


def _is_tty(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())
