"""
FastAPI Application Entry Point

Luna Dine digital-menu ordering API.

Endpoints:
    - GET  /api/branches: List branches
    - GET  /api/settings: Branch settings
    - GET  /api/menu: Branch menu grouped by category
    - GET  /api/tables: Branch tables
    - GET  /api/order_status: Status of a placed order
    - POST /api/orders: Place an order
    - POST /api/promocode: Look up a promo code
    - POST /api/feedback: Rate an order
    - POST /api/service_request: Call staff to a table
    - GET  /health: System health check

Every error is returned as ``{"error": message}``.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, List

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from lunadine.core.config import get_settings, setup_logging
from lunadine.core.exceptions import LunaDineError, MethodNotAllowedError, NotFoundError
from lunadine.database import engine, get_db, init_db
from lunadine.schemas import (
    BranchResponse,
    ErrorResponse,
    FeedbackCreate,
    HealthResponse,
    MenuResponse,
    OrderCreate,
    OrderCreateResponse,
    OrderStatusResponse,
    PromoCodeLookup,
    PromoCodeResponse,
    ServiceRequestCreate,
    SuccessResponse,
    TableResponse,
)
from lunadine.services import catalog, feedback, orders, promo, service_requests

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await init_db()
    logger.info("✅ Database initialized")

    yield  # Application runs

    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Digital-menu ordering backend for a multi-branch restaurant.",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def describe_validation_error(exc: RequestValidationError) -> str:
    """Reduce pydantic's error list to the first problem, worded for clients."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    error = errors[0]
    location = [str(part) for part in error.get("loc", ())]
    source = location[0] if location else ""
    field = ".".join(location[1:])

    if error.get("type") == "json_invalid":
        return "Invalid JSON body"
    if error.get("type") == "missing":
        if not field:
            return "Request body is required"
        if source == "query":
            return f"Missing required parameter: {field}"
        return f"Missing required field: {field}"
    return f"Invalid {field or source}: {error.get('msg', 'invalid value')}"


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🍽️ Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Verify the database is reachable."""
    db_status = "healthy"
    try:
        await db.execute(select(func.now()))
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    return HealthResponse(
        status="operational" if db_status == "healthy" else "degraded",
        database=db_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# CATALOG ENDPOINTS
# =============================================================================

@app.get("/api/branches", response_model=List[BranchResponse], tags=["Catalog"])
async def list_branches(db: AsyncSession = Depends(get_db)) -> List[BranchResponse]:
    """All branches, open or closed."""
    branches = await catalog.list_branches(db)
    return [
        BranchResponse(
            id=branch.id,
            name=branch.name,
            address=branch.address,
            status=branch.status.value,
            phone=branch.phone,
        )
        for branch in branches
    ]


@app.get("/api/settings", responses=ERROR_RESPONSES, tags=["Catalog"])
async def branch_settings(
    branch_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Branch configuration (VAT, currency) with the branch id injected."""
    branch_config = await catalog.get_branch_settings(db, branch_id)
    branch_config["branch_id"] = branch_id
    return branch_config


@app.get("/api/menu", response_model=MenuResponse, responses=ERROR_RESPONSES, tags=["Catalog"])
async def branch_menu(
    branch_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
) -> MenuResponse:
    """Branch menu grouped by category, with customization groups."""
    return MenuResponse.model_validate(await catalog.get_menu(db, branch_id))


@app.get("/api/tables", response_model=List[TableResponse], responses=ERROR_RESPONSES, tags=["Catalog"])
async def branch_tables(
    branch_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
) -> List[TableResponse]:
    tables = await catalog.list_tables(db, branch_id)
    return [TableResponse.model_validate(table) for table in tables]


# =============================================================================
# ORDER ENDPOINTS
# =============================================================================

@app.post(
    "/api/orders",
    response_model=OrderCreateResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
    summary="Place Order",
)
async def create_order(
    order_data: OrderCreate,
    db: AsyncSession = Depends(get_db),
) -> OrderCreateResponse:
    """
    Price the cart and store the order with its items in one transaction.

    Unknown or inactive promo codes are ignored rather than rejected.
    """
    logger.info(
        f"Placing {order_data.order_type.value} order at branch {order_data.branch_id} "
        f"({len(order_data.items)} lines)"
    )
    order = await orders.place_order(db, order_data)

    return OrderCreateResponse(
        order_id=order.order_uid,
        status=order.status.value,
        estimated_completion_time=orders.format_timestamp(order.estimated_completion_time),
    )


@app.get(
    "/api/order_status",
    response_model=OrderStatusResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
)
async def order_status(
    order_uid: str = Query(...),
    db: AsyncSession = Depends(get_db),
) -> OrderStatusResponse:
    order = await orders.get_order_by_uid(db, order_uid)
    return OrderStatusResponse(
        order_id=order.order_uid,
        status=order.status.value,
        estimated_completion_time=orders.format_timestamp(order.estimated_completion_time),
    )


@app.post(
    "/api/promocode",
    response_model=PromoCodeResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
)
async def promo_code_lookup(
    lookup: PromoCodeLookup,
    db: AsyncSession = Depends(get_db),
) -> PromoCodeResponse:
    """Details of an active promo code, or 404."""
    promo_code = await promo.lookup_promo(db, lookup.code)
    return PromoCodeResponse(
        code=promo_code.code,
        type=promo_code.type.value,
        discount=float(promo_code.value),
        min_order_amount=float(promo_code.min_order_amount),
    )


# =============================================================================
# GUEST ENDPOINTS
# =============================================================================

@app.post(
    "/api/feedback",
    response_model=SuccessResponse,
    responses=ERROR_RESPONSES,
    tags=["Guest"],
)
async def create_feedback(
    feedback_data: FeedbackCreate,
    db: AsyncSession = Depends(get_db),
) -> SuccessResponse:
    await feedback.submit_feedback(db, feedback_data)
    return SuccessResponse()


@app.post(
    "/api/service_request",
    response_model=SuccessResponse,
    responses=ERROR_RESPONSES,
    tags=["Guest"],
)
async def create_service_request(
    request_data: ServiceRequestCreate,
    db: AsyncSession = Depends(get_db),
) -> SuccessResponse:
    await service_requests.create_service_request(db, request_data)
    return SuccessResponse()


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(LunaDineError)
async def domain_exception_handler(request: Request, exc: LunaDineError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = describe_validation_error(exc)
    logger.info(f"{request.method} {request.url.path} rejected (400): {message}")
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 405:
        error = MethodNotAllowedError("Method not allowed")
    elif exc.status_code == 404:
        error = NotFoundError("Endpoint not found")
    else:
        error = LunaDineError(str(exc.detail), status_code=exc.status_code)
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_dict(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    detail = str(exc) if settings.debug else "An unexpected error occurred"
    return JSONResponse(
        status_code=500,
        content={"error": f"Internal server error: {detail}"},
    )
