"""Repository layer - data access abstractions and implementations."""

from assetbook.repositories.protocols import PortfolioRepository

__all__ = [
    "PortfolioRepository",
]
