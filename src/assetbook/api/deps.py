"""Dependency injection for FastAPI."""

from fastapi import Depends

from assetbook.app_context import AppContext, get_app_context
from assetbook.services import AccrualScheduler, PortfolioService


def get_context() -> AppContext:
    """Provide the global application context."""
    return get_app_context()


def get_portfolio_service(context: AppContext = Depends(get_context)) -> PortfolioService:
    """Provide PortfolioService instance."""
    return context.portfolio


def get_scheduler(context: AppContext = Depends(get_context)) -> AccrualScheduler:
    """Provide the context's AccrualScheduler."""
    return context.scheduler
