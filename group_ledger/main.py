"""
Group Ledger HTTP application.

Run with `python -m group_ledger.main` or point uvicorn at
`group_ledger.main:app`.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from loguru import logger

from group_ledger.config import get_settings
from group_ledger.logging_config import configure_logging
from group_ledger.models import Base
from group_ledger.models.base import engine
from group_ledger.api.health import router as health_router
from group_ledger.api.expenses import router as expenses_router
from group_ledger.api.settlements import router as settlements_router
from group_ledger.api.balances import router as balances_router

settings = get_settings()
configure_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create any missing tables on startup. There are no migrations."""
    Base.metadata.create_all(bind=engine)
    logger.info(
        "{} {} started ({})",
        settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT,
    )
    yield
    logger.info("{} stopped", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Shared expenses, balances and optimized settle-up plans",
    lifespan=lifespan,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info("{} {}", request.method, request.url.path)
    response = await call_next(request)
    logger.info("→ {}", response.status_code)
    return response


# Register routers
app.include_router(health_router)
app.include_router(expenses_router)
app.include_router(settlements_router)
app.include_router(balances_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "group_ledger.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
