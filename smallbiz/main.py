import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from smallbiz.api.routes.customers import router as customers_router
from smallbiz.api.routes.inventory import router as inventory_router
from smallbiz.api.routes.products import router as products_router
from smallbiz.api.routes.reports import router as reports_router
from smallbiz.api.routes.sales import router as sales_router
from smallbiz.core.config import settings
from smallbiz.core.exceptions import register_exception_handlers
from smallbiz.core.logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging(settings.log_level)
    logger.info("%s starting", settings.app_name)
    yield
    logger.info("%s stopped", settings.app_name)


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)
app.include_router(products_router)
app.include_router(customers_router)
app.include_router(sales_router)
app.include_router(inventory_router)
app.include_router(reports_router)


@app.get("/health", tags=["System"])
def health_check():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
