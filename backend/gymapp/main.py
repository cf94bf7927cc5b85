"""Gym Membership API — FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gymapp.api.v1.admin import router as admin_router
from gymapp.api.v1.auth import router as auth_router
from gymapp.api.v1.billing import router as billing_router
from gymapp.api.v1.members import router as members_router
from gymapp.api.v1.public import router as public_router
from gymapp.api.v1.trainers import router as trainers_router
from gymapp.api.v1.webhooks import router as webhooks_router
from gymapp.config import settings
from gymapp.errors import register_error_handlers

# Configure root logger so all gymapp.* loggers output to stderr.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    yield
    # Shutdown: dispose engine connections
    from gymapp.database import engine

    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Memberships, Stripe billing, and seat-limited booking of classes and trainer sessions.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Routers
app.include_router(auth_router)
app.include_router(members_router)
app.include_router(public_router)
app.include_router(trainers_router)
app.include_router(billing_router)
app.include_router(webhooks_router)
app.include_router(admin_router)


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/", tags=["root"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
