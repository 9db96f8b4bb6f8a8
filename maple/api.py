"""
REST API module for the Maple weather service.

Provides endpoints for:
- Current conditions, forecasts and warnings for the configured city
- Service health
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import Settings
from .feed import DecodeError
from .fetcher import FeedFetcher, FetchError
from .report import WeatherReport

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


# =============================================================================
# Pydantic Models
# =============================================================================

class CurrentConditionModel(BaseModel):
    condition: str
    temperature: float
    observed_at: str
    pressure: float
    humidity: float
    wind_speed: float
    station: Optional[str] = None
    pressure_tendency: Optional[str] = None
    visibility: Optional[float] = None
    dewpoint: Optional[float] = None
    air_quality_index: Optional[float] = None
    link: Optional[str] = None


class ForecastModel(BaseModel):
    short: str
    long: str
    link: str
    updated: str


class WarningModel(BaseModel):
    short: str
    long: str
    link: str
    updated: str


class ExtractionErrorModel(BaseModel):
    stage: str
    message: str


class ReportModel(BaseModel):
    current: Optional[CurrentConditionModel]
    forecasts: List[ForecastModel]
    warnings: List[WarningModel]
    error: Optional[ExtractionErrorModel]
    quality: str


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    feed_url: str


# =============================================================================
# FastAPI Application
# =============================================================================

def create_app(settings: Settings, fetcher: Optional[FeedFetcher] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Service settings.
        fetcher: Feed fetcher to use; one is created from settings (and
            closed on shutdown) when omitted.
    """
    logging.basicConfig(
        level=settings.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        owned = fetcher is None
        app.state.fetcher = fetcher or FeedFetcher(settings.feed_url, timeout=settings.timeout)
        logger.info(f"Serving weather for {settings.feed_url}")

        yield

        if owned:
            app.state.fetcher.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="Maple Weather API",
        description="Current conditions, forecasts and warnings from Environment Canada city feeds",
        version=API_VERSION,
        lifespan=lifespan
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def load_report(request: Request) -> WeatherReport:
        try:
            return request.app.state.fetcher.fetch_report()
        except FetchError as e:
            logger.error(f"Feed fetch failed: {e}")
            raise HTTPException(status_code=502, detail=f"Feed unavailable: {e}")
        except DecodeError as e:
            logger.error(f"Feed decode failed: {e}")
            raise HTTPException(status_code=502, detail=f"Feed could not be decoded: {e}")

    @app.exception_handler(404)
    async def handle_not_found(request: Request, exc: HTTPException):
        logger.warning(f"404 on {request.url.path}")
        return JSONResponse(status_code=404, content={"detail": getattr(exc, "detail", "Not Found")})

    @app.get("/", tags=["Info"])
    async def root():
        """API information."""
        return {
            "name": "Maple Weather API",
            "version": API_VERSION,
            "feed": settings.feed_url,
        }

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            timestamp=datetime.utcnow().isoformat(),
            feed_url=settings.feed_url,
        )

    @app.get("/current", response_model=ReportModel, tags=["Weather"])
    def get_current(request: Request):
        """Full report: current conditions, forecasts and warnings."""
        report = load_report(request)
        return ReportModel(**report.to_dict())

    @app.get("/forecasts", response_model=List[ForecastModel], tags=["Weather"])
    def get_forecasts(request: Request):
        """Forecast periods in feed order."""
        report = load_report(request)
        return [ForecastModel(**f) for f in report.to_dict()["forecasts"]]

    @app.get("/warnings", response_model=List[WarningModel], tags=["Weather"])
    def get_warnings(request: Request):
        """Active warnings and watches in feed order."""
        report = load_report(request)
        return [WarningModel(**w) for w in report.to_dict()["warnings"]]

    return app


app = create_app(Settings.from_env())


if __name__ == "__main__":
    import uvicorn
    settings = Settings.from_env()
    uvicorn.run(app, host=settings.host, port=settings.port)
