"""Per-timeframe TTL cache with single-flight refresh.

Each timeframe owns an independent cell holding the current entry (if any)
and the task of the fetch in progress (if any). Concurrent callers for a
stale or missing timeframe all await that one task, so the upstream sees at
most one request per timeframe at a time. Cells for different timeframes
never wait on each other.

Everything runs on one event loop: the in-flight check and registration in
:meth:`ChartCache.get_or_refresh` happen without an ``await`` in between.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from ohlcv_chart.models import ChartResponse
from ohlcv_chart.timeframes import Timeframe

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[ChartResponse]]


@dataclass(slots=True, frozen=True)
class CacheEntry:
    response: ChartResponse
    expires_at: float


class _Cell:
    __slots__ = ("entry", "inflight")

    def __init__(self) -> None:
        self.entry: CacheEntry | None = None
        self.inflight: asyncio.Task[ChartResponse] | None = None


class ChartCache:
    """Caches one :class:`ChartResponse` per :class:`Timeframe`.

    Args:
        clock: Monotonic time source in seconds; injectable for tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._cells: dict[Timeframe, _Cell] = {}

    def _cell(self, timeframe: Timeframe) -> _Cell:
        cell = self._cells.get(timeframe)
        if cell is None:
            cell = self._cells[timeframe] = _Cell()
        return cell

    def _is_fresh(self, entry: CacheEntry | None) -> bool:
        return entry is not None and self._clock() < entry.expires_at

    async def get_or_refresh(self, timeframe: Timeframe, loader: Loader) -> ChartResponse:
        """Return the cached chart, or load a new one if it is stale or missing.

        If a load for *timeframe* is already running, wait for it instead of
        starting another. Every waiter gets the same result or the same
        exception. A failed load leaves the previous entry untouched, and the
        next call is free to try again.
        """
        cell = self._cell(timeframe)
        if self._is_fresh(cell.entry):
            return cell.entry.response

        if cell.inflight is None:
            logger.debug("Refreshing %s chart", timeframe.value)
            task = asyncio.ensure_future(self._refresh(cell, timeframe, loader))
            task.add_done_callback(_retrieve_exception)
            cell.inflight = task

        # A cancelled caller must not cancel the fetch other callers share.
        return await asyncio.shield(cell.inflight)

    async def _refresh(self, cell: _Cell, timeframe: Timeframe, loader: Loader) -> ChartResponse:
        try:
            response = await loader()
        except Exception as exc:
            logger.warning("Refresh of %s chart failed: %r", timeframe.value, exc)
            raise
        else:
            ttl = timeframe.config.cache_ttl_seconds
            cell.entry = CacheEntry(response=response, expires_at=self._clock() + ttl)
            return response
        finally:
            cell.inflight = None

    def peek(self, timeframe: Timeframe, allow_stale: bool = False) -> ChartResponse | None:
        """Return the cached chart without loading; stale entries only if *allow_stale*."""
        cell = self._cells.get(timeframe)
        if cell is None or cell.entry is None:
            return None
        if allow_stale or self._is_fresh(cell.entry):
            return cell.entry.response
        return None

    def in_flight(self, timeframe: Timeframe) -> bool:
        cell = self._cells.get(timeframe)
        return cell is not None and cell.inflight is not None

    def invalidate(self, timeframe: Timeframe) -> None:
        """Drop the cached entry; a fetch already running is left alone."""
        cell = self._cells.get(timeframe)
        if cell is not None:
            cell.entry = None

    def clear(self) -> None:
        for cell in self._cells.values():
            cell.entry = None


def _retrieve_exception(task: asyncio.Task) -> None:
    # Marks the exception as retrieved when every waiter was cancelled.
    if not task.cancelled():
        task.exception()
