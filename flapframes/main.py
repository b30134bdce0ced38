from contextlib import asynccontextmanager
from typing import Any, cast

from fastapi import FastAPI

from flapframes.api import circuits, content
from flapframes.core.circuit_breaker import get_circuit_breaker
from flapframes.core.config import settings
from flapframes.core.errors import init_sentry
from flapframes.core.logging_config import get_logger
from flapframes.core.scheduler import scheduler, start_scheduler
from flapframes.db import create_db_and_tables
from flapframes.middleware.context import RequestContextMiddleware

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    init_sentry(settings.SENTRY_DSN, environment=settings.ENVIRONMENT)
    create_db_and_tables()
    await get_circuit_breaker().initialize()
    logger.info(
        "api starting",
        project=settings.PROJECT_NAME,
        providers=settings.available_providers(),
        preferred_provider=settings.PREFERRED_AI_PROVIDER,
    )

    if settings.RUN_SCHEDULER:
        start_scheduler()
    else:
        logger.info("RUN_SCHEDULER is false, skipping scheduler startup in this process")

    try:
        yield
    finally:
        if scheduler.running:
            scheduler.shutdown(wait=False)


app = FastAPI(title=settings.PROJECT_NAME, openapi_url=f"{settings.API_V1_STR}/openapi.json", lifespan=lifespan)

app.add_middleware(cast(Any, RequestContextMiddleware))

app.include_router(circuits.router, prefix=f"{settings.API_V1_STR}/circuits", tags=["circuits"])
app.include_router(content.router, prefix=f"{settings.API_V1_STR}/content", tags=["content"])


@app.get("/health")
def health():
    """Basic health check endpoint."""
    return {"status": "healthy"}
