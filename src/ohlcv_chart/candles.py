"""Aggregate raw price/volume samples into fixed-width OHLCV candles.

Prices are rounded to 8 decimals and volume to 2 decimals with Python's
built-in ``round`` (half-to-even on the binary value).
"""

from __future__ import annotations

from collections.abc import Sequence
from operator import attrgetter

from ohlcv_chart.models import Candle, PricePoint, VolumePoint

MAX_CANDLES = 500

_PRICE_DECIMALS = 8
_VOLUME_DECIMALS = 2

_by_timestamp = attrgetter("timestamp_ms")


class _Bucket:
    """Mutable accumulator for one bucket while the series is being walked."""

    __slots__ = ("start_ms", "open", "high", "low", "close", "volume", "samples")

    def __init__(self, start_ms: int, price: float) -> None:
        self.start_ms = start_ms
        self.open = self.high = self.low = self.close = price
        self.volume = 0.0
        self.samples = 1

    def add(self, price: float) -> None:
        self.high = max(self.high, price)
        self.low = min(self.low, price)
        self.close = price
        self.samples += 1

    def to_candle(self) -> Candle:
        return Candle(
            time=self.start_ms // 1000,
            open=round(self.open, _PRICE_DECIMALS),
            high=round(self.high, _PRICE_DECIMALS),
            low=round(self.low, _PRICE_DECIMALS),
            close=round(self.close, _PRICE_DECIMALS),
            volume=round(self.volume, _VOLUME_DECIMALS),
        )


def bucket_start(timestamp_ms: int, bucket_width_ms: int) -> int:
    """Return the start (ms) of the bucket containing *timestamp_ms*."""
    return (timestamp_ms // bucket_width_ms) * bucket_width_ms


def build_candles(
    prices: Sequence[PricePoint],
    volumes: Sequence[VolumePoint],
    bucket_width_ms: int,
    max_candles: int = MAX_CANDLES,
) -> list[Candle]:
    """Build ascending OHLCV candles from unordered price and volume samples.

    Prices are walked in timestamp order. After each price is applied, every
    not-yet-consumed volume sample at or before that price's timestamp is
    credited to its own bucket, but only if that bucket already holds a
    candle. Volume never creates a candle, and samples later than the last
    price are never consumed.

    Args:
        prices:          Price samples in any order. Not modified.
        volumes:         Volume samples in any order. Not modified.
        bucket_width_ms: Candle width in milliseconds.
        max_candles:     Keep only this many of the most recent candles.

    Returns:
        Candles oldest first; empty when *prices* is empty.
    """
    if not prices:
        return []
    if bucket_width_ms <= 0:
        raise ValueError(f"bucket_width_ms must be positive, got {bucket_width_ms}")

    sorted_prices = sorted(prices, key=_by_timestamp)
    sorted_volumes = sorted(volumes, key=_by_timestamp)

    buckets: dict[int, _Bucket] = {}
    volume_index = 0

    for point in sorted_prices:
        start = bucket_start(point.timestamp_ms, bucket_width_ms)
        bucket = buckets.get(start)
        if bucket is None:
            buckets[start] = _Bucket(start, point.price)
        else:
            bucket.add(point.price)

        while (
            volume_index < len(sorted_volumes)
            and sorted_volumes[volume_index].timestamp_ms <= point.timestamp_ms
        ):
            sample = sorted_volumes[volume_index]
            target = buckets.get(bucket_start(sample.timestamp_ms, bucket_width_ms))
            if target is not None:
                target.volume += max(sample.volume, 0.0)
            volume_index += 1

    candles = [buckets[start].to_candle() for start in sorted(buckets)]
    if len(candles) > max_candles:
        return candles[len(candles) - max_candles:]
    return candles
