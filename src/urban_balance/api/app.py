"""Factory for constructing the FastAPI application."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from urban_balance.api.routers import games_router
from urban_balance.settings import get_settings


def create_api() -> FastAPI:
    """Instantiate and configure the FastAPI application."""
    app = FastAPI(title="Urban Balance API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(get_settings().cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(games_router)
    return app


app = create_api()
