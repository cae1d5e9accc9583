from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api import (
    admin,
    auth,
    categories,
    drivers,
    inventory,
    lottery,
    menu,
    orders,
    payments,
    products,
    promotions,
    reports,
    subscriptions,
    tables,
)
from app.core.config import settings
from app.core.logging import setup_logging

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = setup_logging()
    logger.info("%s %s starting", settings.PROJECT_NAME, settings.VERSION)
    yield
    logger.info("%s shutting down", settings.PROJECT_NAME)


app = FastAPI(
    title=f"{settings.PROJECT_NAME} API",
    description="Cardápio digital multi-empresa: pedidos, mesas, promoções e sorteios",
    version=settings.VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
for router in (
    auth.router,
    categories.router,
    products.router,
    menu.router,
    tables.router,
    orders.router,
    drivers.router,
    promotions.router,
    promotions.coupon_router,
    lottery.router,
    inventory.router,
    payments.router,
    reports.router,
    subscriptions.router,
    admin.router,
    admin.jobs_router,
    admin.portal_router,
):
    app.include_router(router, prefix=API_PREFIX)

# Serve uploaded images
uploads_dir = Path(settings.UPLOAD_DIR)
uploads_dir.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=uploads_dir), name="uploads")


@app.get("/health")
async def health_check():
    return {"status": "ok", "version": settings.VERSION}
