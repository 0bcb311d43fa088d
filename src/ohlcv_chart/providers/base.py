"""Abstract base class for upstream price-history providers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ohlcv_chart.models import MarketChart
from ohlcv_chart.timeframes import TimeframeConfig


class MarketChartProvider(ABC):
    """Base class every upstream provider must implement.

    A provider issues exactly one request per :meth:`fetch` call and never
    retries; failures surface as :class:`~ohlcv_chart.errors.UpstreamError`
    subclasses so the cache can hand the same outcome to every waiter.
    """

    #: Human-readable provider name, reported as the chart ``source``.
    name: str = ""

    @abstractmethod
    async def fetch(self, config: TimeframeConfig) -> MarketChart:
        """Fetch the raw price and volume series covering *config*'s lookback.

        Args:
            config: Timeframe settings; only ``lookback_days`` is sent upstream.

        Returns:
            A validated :class:`~ohlcv_chart.models.MarketChart` whose series
            are in upstream order (not necessarily sorted).

        Raises:
            UpstreamUnreachable:       the request could not be completed.
            UpstreamHTTPError:         the provider returned a non-2xx status.
            UpstreamMalformedResponse: the body failed validation.
        """

    async def close(self) -> None:
        """Release any network resources held by the provider."""
