# Main application file

import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from lims.core.config import settings
from lims.core.errors import InventoryError
from lims.core.rate_limiter import limiter
from lims.models import categories, components, transactions, users  # noqa: F401
from lims.routers import (
    auth,
    users as users_router,
    categories as categories_router,
    components as components_router,
    transactions as transactions_router,
    reports,
    exports,
)


# LOGGING CONFIGURATION

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s | %(levelname)s | %(message)s",
)

logger = logging.getLogger("app")


# APP INIT

app = FastAPI(
    title="Lab Inventory API",
    description="Component stock, transactions and reports for the electronics lab",
    version="1.0.0",
    debug=settings.DEBUG,
)


# CORS (Token-based auth)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


# RATE LIMITING

app.state.limiter = limiter
app.add_exception_handler(
    RateLimitExceeded,
    _rate_limit_exceeded_handler
)


# INVENTORY ERRORS

def inventory_error_handler(request: Request, exc: InventoryError):
    logger.info(
        f"{request.method} {request.url.path} "
        f"rejected: {type(exc).__name__}: {exc.message}"
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


app.add_exception_handler(InventoryError, inventory_error_handler)


# REQUEST LOGGING MIDDLEWARE

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    duration = round((time.time() - start_time) * 1000, 2)

    logger.info(
        f"{request.method} {request.url.path} "
        f"Status: {response.status_code} "
        f"Time: {duration}ms"
    )

    return response


# ROUTERS

app.include_router(auth.router)
app.include_router(users_router.router)
app.include_router(categories_router.router)
app.include_router(components_router.router)
app.include_router(transactions_router.router)
app.include_router(reports.router)
app.include_router(exports.router)


# ROOT

@app.get("/")
def root():
    logger.info("Health check endpoint called")
    return {"message": "Lab Inventory API is running"}
