"""
HTTP API for the Price Comparison Engine

Routes:
- GET /health
- GET /api/price-comparison/test
- GET /api/price-comparison/search     comparison groups across vendors
- GET /api/price-comparison/stats      price statistics for an item
- GET /api/price-comparison/popular    items ranked by vendor coverage
- GET /api/vendor-items/search         paginated browse, optional radius
- GET /api/vendor-items/categories     listing count per category

Query parameters are validated against the request schemas; unknown
parameters are rejected with 400. Responses use a {"success", "data"}
envelope.
"""

import logging
from contextlib import asynccontextmanager
from typing import Iterator

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from comparison_engine import PriceComparisonEngine
from config import configure_logging
from database import get_db_manager
from errors import InvalidQueryError, ItemNotFoundError, StoreQueryError
from schemas import (
    CategoryCountsRequest,
    ComparisonSearchRequest,
    PopularRequest,
    ProximitySearchRequest,
    StatsRequest,
    parse_request,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    get_db_manager().init_db()
    yield


app = FastAPI(title="Vendor Price Comparison API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Dependencies

def get_session() -> Iterator[Session]:
    session = get_db_manager().get_session()
    try:
        yield session
    finally:
        session.close()


def get_engine(session: Session = Depends(get_session)) -> PriceComparisonEngine:
    return PriceComparisonEngine(session)


# Error mapping

@app.exception_handler(InvalidQueryError)
async def invalid_query_handler(request: Request, exc: InvalidQueryError):
    return JSONResponse(status_code=400, content={"success": False, "message": str(exc)})


@app.exception_handler(ItemNotFoundError)
async def not_found_handler(request: Request, exc: ItemNotFoundError):
    return JSONResponse(status_code=404, content={"success": False, "message": str(exc)})


@app.exception_handler(StoreQueryError)
async def store_error_handler(request: Request, exc: StoreQueryError):
    logger.error(f"Store failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"success": False, "message": "Internal server error"})


# Routes

@app.get("/health")
def health():
    db_ok = get_db_manager().health_check()
    return {"status": "healthy" if db_ok else "degraded", "database": "ok" if db_ok else "error"}


@app.get("/api/price-comparison/test")
def price_comparison_test():
    return {"success": True, "message": "Price comparison routes working!"}


@app.get("/api/price-comparison/search")
def search_items_for_comparison(request: Request, engine: PriceComparisonEngine = Depends(get_engine)):
    req = parse_request(ComparisonSearchRequest, dict(request.query_params))
    result = engine.search(req.to_filters(), req.sort_by, req.location)
    return {"success": True, "data": result.to_dict()}


@app.get("/api/price-comparison/stats")
def item_price_stats(request: Request, engine: PriceComparisonEngine = Depends(get_engine)):
    req = parse_request(StatsRequest, dict(request.query_params))
    stats = engine.stats(req.name, req.category, req.type)
    return {"success": True, "data": stats.to_dict()}


@app.get("/api/price-comparison/popular")
def popular_items(request: Request, engine: PriceComparisonEngine = Depends(get_engine)):
    req = parse_request(PopularRequest, dict(request.query_params))
    items = engine.popular(req.type, req.limit)
    return {"success": True, "data": [item.to_dict() for item in items]}


@app.get("/api/vendor-items/search")
def search_vendor_items(request: Request, engine: PriceComparisonEngine = Depends(get_engine)):
    req = parse_request(ProximitySearchRequest, dict(request.query_params))
    page = engine.proximity_search(
        req.to_filters(),
        geo=req.geo,
        sort_by=req.sort_by,
        sort_order=req.sort_order,
        page=req.page,
        limit=req.limit,
    )
    return {"success": True, "data": page.to_dict()}


@app.get("/api/vendor-items/categories")
def item_categories(request: Request, engine: PriceComparisonEngine = Depends(get_engine)):
    req = parse_request(CategoryCountsRequest, dict(request.query_params))
    return {"success": True, "data": engine.category_counts(req.type, req.vendor_id)}


if __name__ == "__main__":
    import uvicorn
    from config import PORT

    uvicorn.run(app, host="0.0.0.0", port=PORT)
