"""FastAPI application initialization."""

from contextlib import asynccontextmanager

import logfire
import sentry_sdk
from fastapi import FastAPI
from pydantic import ValidationError
from sentry_sdk.integrations.fastapi import FastApiIntegration

from instagram_relay.api import health, webhook
from instagram_relay.config import describe_settings_error, get_settings
from instagram_relay.logging_config import setup_logfire
from instagram_relay.middleware.correlation_id import CorrelationIDMiddleware

APP_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Settings are validated before anything else; missing credentials are
    reported by name and abort startup.
    """
    try:
        settings = get_settings()
    except ValidationError as e:
        logfire.error(
            "Missing or invalid configuration, refusing to start",
            settings=describe_settings_error(e),
        )
        raise

    # Initialize Logfire for observability
    setup_logfire(app, settings)

    # Initialize Sentry if DSN is provided
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.env,
            traces_sample_rate=settings.sentry_traces_sample_rate,
            integrations=[FastApiIntegration()],
        )

    logfire.info(
        "Application startup complete",
        assistant_id=settings.openai_assistant_id,
        environment=settings.env,
        port=settings.port,
    )

    yield

    logfire.info("Application shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Instagram AI Bot",
    description="Relays Instagram direct messages to an OpenAI assistant",
    version=APP_VERSION,
    lifespan=lifespan,
)

# Correlation ID middleware (must be first for request tracing)
app.add_middleware(CorrelationIDMiddleware)

# Register routers
app.include_router(health.router, tags=["health"])
app.include_router(webhook.router, prefix="/webhook", tags=["webhook"])


def run() -> None:
    """Run the server with uvicorn on the configured port."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "instagram_relay.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.env == "local",
    )


if __name__ == "__main__":
    run()
