"""Data models for raw tick series, candles, and chart responses."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ohlcv_chart.timeframes import Timeframe


@dataclass(slots=True, frozen=True)
class PricePoint:
    """One ``(timestamp, price)`` sample from the upstream series."""

    timestamp_ms: int
    price: float


@dataclass(slots=True, frozen=True)
class VolumePoint:
    """One ``(timestamp, volume)`` sample from the upstream series."""

    timestamp_ms: int
    volume: float


@dataclass(slots=True, frozen=True)
class MarketChart:
    """Validated upstream payload: unordered price and volume series."""

    prices: tuple[PricePoint, ...]
    volumes: tuple[VolumePoint, ...] = ()


@dataclass(slots=True, frozen=True)
class Candle:
    """A single OHLCV bar.

    Attributes:
        time:   Bucket start as a Unix timestamp (seconds, UTC).
        open:   First price seen in the bucket.
        high:   Highest price during the bucket.
        low:    Lowest price during the bucket.
        close:  Latest price seen in the bucket.
        volume: Traded volume attributed to the bucket.
    """

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    def __post_init__(self) -> None:
        if self.high < self.low:
            raise ValueError(f"high ({self.high}) must be >= low ({self.low})")

    def to_dict(self) -> dict[str, float | int]:
        return {
            "time": self.time,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }


@dataclass(slots=True, frozen=True)
class ChartResponse:
    """An aggregated chart for one pair and timeframe, oldest candle first."""

    pair: str
    timeframe: Timeframe
    bucket_width_seconds: int
    generated_at: datetime.datetime
    source: str
    candles: tuple[Candle, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        """Render the caller-facing JSON shape."""
        updated_at = self.generated_at.astimezone(datetime.timezone.utc)
        return {
            "pair": self.pair,
            "timeframe": self.timeframe.value,
            "granularitySeconds": self.bucket_width_seconds,
            "updatedAt": updated_at.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "source": self.source,
            "candles": [candle.to_dict() for candle in self.candles],
        }
