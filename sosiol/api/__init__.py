"""API router registry used by the app factory.

This keeps route module imports and inclusion order in one place so
`sosiol.main` stays focused on startup wiring.
"""

from __future__ import annotations

from fastapi import APIRouter

from . import creators, health, tips, transactions, uploads

API_PREFIX = "/api"

API_ROUTERS: tuple[APIRouter, ...] = (
    creators.router,
    tips.router,
    transactions.router,
    uploads.router,
)

# Mounted at the root, outside API_PREFIX
ROOT_ROUTERS: tuple[APIRouter, ...] = (
    health.router,
    uploads.files_router,
)

__all__ = ["API_PREFIX", "API_ROUTERS", "ROOT_ROUTERS"]
