import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException

load_dotenv()

from artspark.core.config import settings, validate_config
from artspark.core.logging import configure_logging
from artspark.core.middleware.request_id import RequestIdMiddleware
from artspark.core.validation import validate_env
from artspark.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    unhandled_exception_handler,
)
from artspark.core.environment import get_environment
from artspark.api import connectivity, health, preferences, prompts, responses, streaks

configure_logging(settings.ENV, settings.LOG_LEVEL)
validate_env()
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("artspark")
    logger.info("Starting ArtSpark backend...")
    env = get_environment()
    if env.name == "live":
        from artspark.core.database import create_all_tables

        create_all_tables()
    await env.orchestrator.start()
    if env.probe is not None:
        env.probe.start()
    try:
        yield
    finally:
        if env.probe is not None:
            await env.probe.stop()
        await env.orchestrator.stop()
        logger.info("Stopping ArtSpark backend...")


app = FastAPI(title="ArtSpark - Backend", lifespan=lifespan)

app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(HTTPException, http_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.include_router(prompts.router, tags=["prompts"])
app.include_router(responses.router, tags=["responses"])
app.include_router(connectivity.router, tags=["connectivity"])
app.include_router(streaks.router, tags=["streaks"])
app.include_router(preferences.router, tags=["preferences"])
app.include_router(health.root_router, tags=["health"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("artspark.main:app", host="0.0.0.0", port=8000, reload=settings.ENV == "development")
