"""HTTP API serving cached OHLCV charts.

Endpoints:
- GET /health                                    - Liveness and wiring info
- GET /market-data/v1/charts/{pair-slug}         - Chart for ``?timeframe=1D|7D|30D|90D``
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from ohlcv_chart.config import Settings
from ohlcv_chart.errors import InvalidTimeframe, UpstreamError, UpstreamHTTPError
from ohlcv_chart.service import ChartService
from ohlcv_chart.timeframes import DEFAULT_TIMEFRAME, Timeframe

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def create_app(settings: Settings | None = None, service: ChartService | None = None) -> FastAPI:
    """Build the FastAPI app.

    Args:
        settings: Defaults to :meth:`Settings.from_env`.
        service:  Pre-built service (tests); otherwise one is created at
                  startup from *settings* and closed at shutdown.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = service is None
        app.state.chart_service = service or ChartService.from_settings(settings)
        logger.info(
            "Serving %s charts from %s (%s)",
            settings.pair,
            app.state.chart_service.source,
            settings.base_url,
        )
        try:
            yield
        finally:
            if owned:
                await app.state.chart_service.close()
            logger.info("Chart API shutdown complete")

    app = FastAPI(
        title="ohlcv-chart",
        description="Cached OHLCV candles aggregated from upstream price history",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.exception_handler(InvalidTimeframe)
    async def invalid_timeframe_handler(request: Request, exc: InvalidTimeframe) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={
                "error": "Invalid query parameters",
                "detail": f"{exc}. Must be one of: {[tf.value for tf in Timeframe]}",
            },
        )

    @app.exception_handler(UpstreamError)
    async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
        content = {"error": type(exc).__name__, "detail": str(exc)}
        if isinstance(exc, UpstreamHTTPError):
            content["status"] = exc.status
        return JSONResponse(status_code=502, content=content)

    @app.get("/health")
    async def health(request: Request):
        return {
            "status": "ok",
            "pair": settings.pair,
            "source": request.app.state.chart_service.source,
        }

    @app.get(f"/market-data/v1/charts/{settings.pair_slug}")
    async def chart(
        request: Request,
        timeframe: str = Query(default=DEFAULT_TIMEFRAME.value, description="1D, 7D, 30D or 90D"),
    ):
        service_: ChartService = request.app.state.chart_service
        result = await service_.get_chart(Timeframe.parse(timeframe))
        return result.to_dict()

    return app


def main() -> None:
    """Console entry point: run the API under uvicorn."""
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
