"""
HTTP API for the price analytics.

A thin FastAPI layer: each route reads its query parameters, calls the
matching PriceQueries method, and wraps the result as
{"success": true, "data": ...}.

    GET /api/prices/latest             ?commodity
    GET /api/prices/historical         ?commodity&startDate&endDate&grade
    GET /api/prices/monthly            ?commodity&startDate&endDate&grade
    GET /api/prices/records            ?commodity&startDate&endDate&grade
    GET /api/prices/seasonal           ?commodity&grade
    GET /api/prices/year-over-year     ?commodity&grade
    GET /api/prices/period-analysis    ?commodity&startDate&endDate&grade
    GET /api/prices/advanced-analytics ?startDate&endDate&grade
    GET /api/prices/health
    GET /health

Errors come back as {"error": ..., "message": ...} with status 400 (bad
parameter), 404 (no data), or 500 (anything unexpected).

Run with:  python main.py
"""

import functools
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from analysis.errors import InvalidArgument, NoDataFound, QueryError
from analysis.queries import PriceQueries

logger = logging.getLogger(__name__)

router = APIRouter()


def _error_response(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "message": message})


def _guarded(action: str):
    """
    Turn unexpected failures inside a route into a 500 naming the action.

    InvalidArgument and NoDataFound pass through to the app's exception
    handlers.
    """
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return {"success": True, "data": fn(*args, **kwargs)}
            except QueryError:
                raise
            except Exception:
                logger.exception("Error while trying to %s", action)
                return _error_response(500, "Internal server error", f"Failed to {action}")
        return wrapper
    return decorator


def _queries(request: Request) -> PriceQueries:
    return request.app.state.queries


# ---------------------------------------------------------------------------
# Price routes
# ---------------------------------------------------------------------------
@router.get("/latest")
@_guarded("fetch latest prices")
def latest_prices(request: Request, commodity: str | None = None):
    return _queries(request).latest_prices(commodity)


@router.get("/historical")
@_guarded("fetch historical trends")
def historical_trends(
    request: Request,
    commodity: str | None = None,
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    grade: str | None = None,
):
    return _queries(request).historical_trends(commodity, start_date, end_date, grade)


@router.get("/monthly")
@_guarded("calculate monthly averages")
def monthly_averages(
    request: Request,
    commodity: str | None = None,
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    grade: str | None = None,
):
    return _queries(request).monthly_averages(commodity, start_date, end_date, grade)


@router.get("/records")
@_guarded("calculate price records")
def price_records(
    request: Request,
    commodity: str | None = None,
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    grade: str | None = None,
):
    return _queries(request).price_records(commodity, start_date, end_date, grade)


@router.get("/seasonal")
@_guarded("calculate seasonal patterns")
def seasonal_patterns(request: Request, commodity: str | None = None, grade: str | None = None):
    return _queries(request).seasonal_patterns(commodity, grade)


@router.get("/year-over-year")
@_guarded("calculate year-over-year comparisons")
def year_over_year(request: Request, commodity: str | None = None, grade: str | None = None):
    return _queries(request).year_over_year(commodity, grade)


@router.get("/period-analysis")
@_guarded("calculate period-to-period analysis")
def period_analysis(
    request: Request,
    commodity: str | None = None,
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    grade: str | None = None,
):
    return _queries(request).period_analysis(commodity, start_date, end_date, grade)


@router.get("/advanced-analytics")
@_guarded("calculate advanced analytics")
def advanced_analytics(
    request: Request,
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    grade: str | None = None,
):
    return _queries(request).advanced_analytics(start_date, end_date, grade)


@router.get("/health")
def price_health(request: Request):
    try:
        return _queries(request).health()
    except Exception as e:
        logger.exception("Health check failed")
        return JSONResponse(status_code=500, content={"status": "unhealthy", "error": str(e)})


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------
def create_app(queries: PriceQueries) -> FastAPI:
    """
    Build the FastAPI app around an already-loaded PriceQueries.

    The store behind `queries` is read-only, so routes can run in
    parallel worker threads without any locking.
    """
    app = FastAPI(
        title="Mandi Pulse — Onion & Potato Price Analytics",
        version="1.0.0",
    )
    app.state.queries = queries

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api/prices", tags=["prices"])

    @app.get("/health")
    def server_health(request: Request):
        return {
            "status": "Server is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "host": request.headers.get("host"),
        }

    @app.exception_handler(InvalidArgument)
    async def invalid_argument_handler(request: Request, exc: InvalidArgument) -> JSONResponse:
        return _error_response(400, exc.error, exc.message)

    @app.exception_handler(NoDataFound)
    async def no_data_handler(request: Request, exc: NoDataFound) -> JSONResponse:
        return _error_response(404, exc.error, exc.message)

    return app
