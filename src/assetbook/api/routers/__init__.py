"""API routers package."""

from assetbook.api.routers.portfolio import router as portfolio_router
from assetbook.api.routers.deposits import router as deposits_router

__all__ = [
    "portfolio_router",
    "deposits_router",
]
