"""Supported chart horizons and their bucket/lookback/TTL settings."""

from __future__ import annotations

import datetime
import enum
from dataclasses import dataclass

from ohlcv_chart.errors import InvalidTimeframe


@dataclass(slots=True, frozen=True)
class TimeframeConfig:
    """How much history to fetch, how wide each candle is, and how long to cache it."""

    lookback_days: int
    bucket_width: datetime.timedelta
    cache_ttl: datetime.timedelta

    @property
    def bucket_width_ms(self) -> int:
        return int(self.bucket_width.total_seconds() * 1000)

    @property
    def bucket_width_seconds(self) -> int:
        return int(self.bucket_width.total_seconds())

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl.total_seconds()


class Timeframe(enum.Enum):
    ONE_DAY = "1D"
    SEVEN_DAYS = "7D"
    THIRTY_DAYS = "30D"
    NINETY_DAYS = "90D"

    @property
    def config(self) -> TimeframeConfig:
        return TIMEFRAME_CONFIGS[self]

    @classmethod
    def parse(cls, value: str | None) -> Timeframe:
        """Resolve a case-insensitive selector; ``None`` (absent) means ``1D``.

        Raises:
            InvalidTimeframe: for anything outside ``1D``, ``7D``, ``30D``, ``90D``.
        """
        if value is None:
            return DEFAULT_TIMEFRAME
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise InvalidTimeframe(value) from None


DEFAULT_TIMEFRAME = Timeframe.ONE_DAY

TIMEFRAME_CONFIGS: dict[Timeframe, TimeframeConfig] = {
    Timeframe.ONE_DAY: TimeframeConfig(
        lookback_days=1,
        bucket_width=datetime.timedelta(minutes=15),
        cache_ttl=datetime.timedelta(seconds=60),
    ),
    Timeframe.SEVEN_DAYS: TimeframeConfig(
        lookback_days=7,
        bucket_width=datetime.timedelta(hours=1),
        cache_ttl=datetime.timedelta(minutes=5),
    ),
    Timeframe.THIRTY_DAYS: TimeframeConfig(
        lookback_days=30,
        bucket_width=datetime.timedelta(hours=4),
        cache_ttl=datetime.timedelta(minutes=5),
    ),
    Timeframe.NINETY_DAYS: TimeframeConfig(
        lookback_days=90,
        bucket_width=datetime.timedelta(days=1),
        cache_ttl=datetime.timedelta(minutes=10),
    ),
}
