import time
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from app.common.error_handlers import register_error_handlers
from app.core.config import settings
from app.logger_config import logger
from app.api.v1 import category, unit, warehouse, expense, product, partner, transaction

app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - started) * 1000
    logger.info(f"{request.method} {request.url.path} - {response.status_code} - {duration_ms:.1f} ms")
    return response


register_error_handlers(app)

# Register API routers
app.include_router(
    transaction.router, prefix="/api/v1/transactions", tags=["transactions"])
app.include_router(
    product.router, prefix="/api/v1/products", tags=["products"])
app.include_router(
    partner.router, prefix="/api/v1/partners", tags=["partners"])
app.include_router(
    category.router, prefix="/api/v1/categories", tags=["categories"])
app.include_router(
    unit.router, prefix="/api/v1/units", tags=["units"])
app.include_router(
    warehouse.router, prefix="/api/v1/warehouses", tags=["warehouses"])
app.include_router(
    expense.router, prefix="/api/v1/expenses", tags=["expenses"])


@app.get("/api/health", tags=["health"])
def health_check():
    return {
        "success": True,
        "message": "Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/")
def read_root():
    return {"message": f"Welcome to the {settings.APP_NAME} APIs!"}
