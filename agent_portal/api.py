from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

load_dotenv(dotenv_path=Path(__file__).resolve().parents[1] / ".env", override=False)

from .config import Settings, get_settings
from .db.snapshots import create_snapshot_repository
from .errors import PortalError
from .models.listings import CamelModel, FilterCriteria, NormalizedProperty, SearchResponse
from .models.market import MetroStats, MonthlyStat, PulseSnapshot, ZipDetail, ZipStat
from .services.listings_client import ListingsClient
from .services.market_pulse import MarketPulseService
from .services.market_stats import MarketStatsAggregator
from .services.marketing_copy import ListingCopywriter
from .services.query_composer import ListingsQueryComposer
from .utils.geo import ZipCentroids
from .utils.logging import get_logger

LOGGER = get_logger("api")

app = FastAPI(title="Agent Portal API")
router = APIRouter(prefix="/api")


# ----------------------------------------------------------------------
# Error mapping
@app.exception_handler(PortalError)
def portal_error_handler(request: Request, exc: PortalError):
    if exc.status_code >= 500:
        LOGGER.warning("request_failed path=%s status=%s message=%s", request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"message": message})


@app.exception_handler(Exception)
def unexpected_error_handler(request: Request, exc: Exception):
    LOGGER.error("unhandled_error path=%s", request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


# ----------------------------------------------------------------------
# Dependencies
def get_app_settings() -> Settings:
    return get_settings()


@lru_cache(maxsize=4)
def _listings_client(settings: Settings) -> ListingsClient:
    return ListingsClient.from_settings(settings)


def get_listings_client(settings: Settings = Depends(get_app_settings)) -> ListingsClient:
    return _listings_client(settings)


def get_composer(
    client: ListingsClient = Depends(get_listings_client),
    settings: Settings = Depends(get_app_settings),
) -> ListingsQueryComposer:
    return ListingsQueryComposer(client, settings)


def get_aggregator(
    client: ListingsClient = Depends(get_listings_client),
    settings: Settings = Depends(get_app_settings),
) -> MarketStatsAggregator:
    centroids = ZipCentroids.from_csv(settings.zip_centroids_path)
    return MarketStatsAggregator(client, centroids, cdn_url=settings.repliers_cdn_url)


@lru_cache(maxsize=4)
def _snapshot_repository(settings: Settings):
    return create_snapshot_repository(settings)


def get_pulse_service(
    client: ListingsClient = Depends(get_listings_client),
    settings: Settings = Depends(get_app_settings),
) -> MarketPulseService:
    return MarketPulseService(client, _snapshot_repository(settings), settings.office)


@lru_cache(maxsize=4)
def _copywriter(api_key: Optional[str], model: str) -> ListingCopywriter:
    return ListingCopywriter(api_key=api_key, model=model)


def get_copywriter(settings: Settings = Depends(get_app_settings)) -> ListingCopywriter:
    return _copywriter(settings.google_api_key, settings.llm_model)


# ----------------------------------------------------------------------
# Routes
@router.get("/health")
def health(settings: Settings = Depends(get_app_settings)):
    return {"status": "ok", "listingsConfigured": bool(settings.repliers_api_key)}


@router.post("/cma/search-properties", response_model=SearchResponse)
def search_properties(criteria: FilterCriteria, composer: ListingsQueryComposer = Depends(get_composer)):
    return composer.search_properties(criteria)


@router.get("/pulse/overview", response_model=MetroStats)
def pulse_overview(aggregator: MarketStatsAggregator = Depends(get_aggregator)):
    return aggregator.overview()


@router.get("/pulse/heatmap", response_model=List[ZipStat])
def pulse_heatmap(aggregator: MarketStatsAggregator = Depends(get_aggregator)):
    return aggregator.heatmap()


@router.get("/pulse/trends", response_model=List[MonthlyStat])
def pulse_trends(months: int = Query(6), aggregator: MarketStatsAggregator = Depends(get_aggregator)):
    return aggregator.trends(months)


@router.get("/pulse/zip/{zip_code}", response_model=ZipDetail)
def pulse_zip(zip_code: str, aggregator: MarketStatsAggregator = Depends(get_aggregator)):
    return aggregator.zip_detail(zip_code)


@router.get("/pulse/compare", response_model=List[ZipStat])
def pulse_compare(zips: str = Query(""), aggregator: MarketStatsAggregator = Depends(get_aggregator)):
    return aggregator.compare(zips)


@router.get("/market-pulse", response_model=PulseSnapshot)
def market_pulse(refresh: bool = Query(False), service: MarketPulseService = Depends(get_pulse_service)):
    return service.get_market_pulse(force_refresh=refresh)


class ListingCopyRequest(CamelModel):
    listing: NormalizedProperty
    tone: str = "professional"
    channel: str = "listing"


@router.post("/marketing/listing-copy")
def listing_copy(req: ListingCopyRequest, writer: ListingCopywriter = Depends(get_copywriter)):
    return writer.generate_listing_copy(req.listing, tone=req.tone, channel=req.channel)


app.include_router(router)
