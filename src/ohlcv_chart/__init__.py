"""ohlcv-chart: cached OHLCV candles aggregated from upstream price history."""

from .cache import ChartCache
from .candles import MAX_CANDLES, build_candles
from .errors import (
    ChartError,
    InvalidTimeframe,
    UpstreamError,
    UpstreamHTTPError,
    UpstreamMalformedResponse,
    UpstreamUnreachable,
)
from .models import Candle, ChartResponse, MarketChart, PricePoint, VolumePoint
from .service import ChartService
from .timeframes import Timeframe, TimeframeConfig

__all__ = [
    "Candle",
    "ChartCache",
    "ChartError",
    "ChartResponse",
    "ChartService",
    "InvalidTimeframe",
    "MAX_CANDLES",
    "MarketChart",
    "PricePoint",
    "Timeframe",
    "TimeframeConfig",
    "UpstreamError",
    "UpstreamHTTPError",
    "UpstreamMalformedResponse",
    "UpstreamUnreachable",
    "VolumePoint",
    "build_candles",
]
__version__ = "0.1.0"
