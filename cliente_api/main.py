"""
FastAPI application factory and entry point.

This module creates and configures the FastAPI application:
  1. Lifespan manager — logging, table creation, reference data, cleanup
  2. CORS middleware — allows frontend origins to make cross-origin requests
  3. Exception handlers — maps domain errors to the JSON error body
  4. Router registration — public auth routes and gateway-protected customer routes

Running locally:
    uvicorn cliente_api.main:app --reload
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cliente_api import models  # noqa: F401  (registers every table on Base.metadata)
from cliente_api.config import settings
from cliente_api.database import AsyncSessionLocal, Base, engine
from cliente_api.dependencies import get_request_context
from cliente_api.exceptions import register_exception_handlers
from cliente_api.routers import auth, customers
from cliente_api.seed import seed_reference_data


def configure_logging(level: str = "INFO") -> None:
    """Send application logs to stdout with one format for every module."""
    logging.basicConfig(
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
      Creates all tables if they don't exist, then seeds roles, the banking
      product catalog and (optionally) the demo users.

    Shutdown:
      Disposes of the database engine, closing all connections cleanly.
    """
    # --- Startup ---
    configure_logging(settings.LOG_LEVEL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with AsyncSessionLocal() as session:
        await seed_reference_data(session, include_users=settings.SEED_DEFAULT_USERS)
    yield
    # --- Shutdown ---
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Bank customer directory with JWT authentication and role-based access",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

# Public: no gateway, no role check
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])

# Protected: the gateway establishes identity once per request
app.include_router(
    customers.router,
    prefix="/api/clientes",
    tags=["Customers"],
    dependencies=[Depends(get_request_context)],
)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness probe for load balancers and orchestrators."""
    return {"status": "ok", "version": settings.APP_VERSION}
