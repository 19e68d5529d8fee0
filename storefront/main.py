"""Main application entry point."""
import logging
from contextlib import asynccontextmanager

import redis
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

from storefront.config import (
    API_VERSION,
    OTEL_ENABLED,
    RATE_LIMIT_ENABLED,
    RATE_LIMIT_PER_MINUTE_IP,
    RATE_LIMIT_PER_MINUTE_USER,
    REDIS_URL,
    SEED_PRODUCTS,
)
from storefront.database import engine, init_db
from storefront.errors import register_exception_handlers
from storefront.logging_config import setup_logging
from storefront.monitoring import init_telemetry
from storefront.redis_rate_limiter import RedisRateLimiter
from storefront.routers import auth, cart, orders, products, users

# Setup structured logging
setup_logging()
logger = logging.getLogger(__name__)

# Sync client, the rate limiter middleware is sync
redis_client = redis.from_url(REDIS_URL, decode_responses=True) if RATE_LIMIT_ENABLED else None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    logger.info("Starting application...")

    init_db(seed=SEED_PRODUCTS)

    if OTEL_ENABLED:
        init_telemetry()
        if redis_client is not None:
            RedisInstrumentor().instrument(redis_client=redis_client)

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application...")
    if redis_client is not None:
        redis_client.close()
    engine.dispose()
    logger.info("Application shutdown complete")


app = FastAPI(
    title="Storefront Service",
    version=API_VERSION,
    lifespan=lifespan
)

register_exception_handlers(app)

if RATE_LIMIT_ENABLED:
    app.add_middleware(
        RedisRateLimiter,
        redis_client=redis_client,
        requests_per_minute_ip=RATE_LIMIT_PER_MINUTE_IP,
        requests_per_minute_user=RATE_LIMIT_PER_MINUTE_USER
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if OTEL_ENABLED:
    FastAPIInstrumentor.instrument_app(app)
    SQLAlchemyInstrumentor().instrument(engine=engine)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


app.include_router(auth.router)
app.include_router(users.router)
app.include_router(products.router)
app.include_router(cart.router)
app.include_router(orders.router)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
