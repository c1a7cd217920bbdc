"""SQLAlchemy implementation of PortfolioRepository."""

import logging
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Iterator, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from assetbook.core.exceptions import AppError, ConcurrencyConflict, PersistenceError
from assetbook.core.timezone import now_local, to_local
from assetbook.domain.models import DepositMetadata, PortfolioItem
from assetbook.domain.valuation import revalue
from assetbook.repositories.sqlalchemy.orm_models import PortfolioItemORM

logger = logging.getLogger(__name__)


class SqlAlchemyPortfolioRepository:
    """
    SQLAlchemy-backed portfolio repository.

    Every operation runs in its own session and transaction, so one instance
    can be shared by request handlers and the accrual timer thread.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[Session]:
        """Open a session, commit on success, roll back on any failure."""
        session: Session = self._session_factory()
        try:
            yield session
            session.commit()
        except AppError:
            session.rollback()
            raise
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("%s failed: %s", operation, exc)
            raise PersistenceError(operation, str(exc)) from exc
        finally:
            session.close()

    def get_items(self, owner_id: str) -> list[PortfolioItem]:
        """List every item owned by owner_id, newest first."""
        with self._transaction("get_items") as session:
            rows = session.scalars(
                select(PortfolioItemORM)
                .where(PortfolioItemORM.owner_id == owner_id)
                .order_by(PortfolioItemORM.created_at.desc(), PortfolioItemORM.item_id)
            ).all()
            return [self._to_domain(row) for row in rows]

    def upsert_item(self, item: PortfolioItem) -> PortfolioItem:
        """
        Insert or update an item using a version compare-and-set.

        The UPDATE only matches the row at item.version, so two writers that
        read the same version cannot both succeed.
        """
        with self._transaction("upsert_item") as session:
            values = self._to_columns(item)
            if item.version == 0:
                row = PortfolioItemORM(item_id=item.item_id, version=1, **values)
                session.add(row)
                try:
                    session.flush()
                except IntegrityError as exc:
                    raise ConcurrencyConflict(item.item_id, item.version) from exc
            else:
                result = session.execute(
                    update(PortfolioItemORM)
                    .where(
                        PortfolioItemORM.item_id == item.item_id,
                        PortfolioItemORM.version == item.version,
                    )
                    .values(version=item.version + 1, **values)
                )
                if result.rowcount == 0:
                    current = session.get(PortfolioItemORM, item.item_id)
                    actual = current.version if current is not None else None
                    raise ConcurrencyConflict(item.item_id, item.version, actual)
                row = session.get(PortfolioItemORM, item.item_id, populate_existing=True)
            return self._to_domain(row)

    def delete_item(self, item_id: str) -> None:
        """Delete an item (hard delete)."""
        with self._transaction("delete_item") as session:
            session.execute(delete(PortfolioItemORM).where(PortfolioItemORM.item_id == item_id))

    def bulk_update_by_symbol(
        self,
        owner_id: str,
        symbol: str,
        new_price: Decimal,
    ) -> list[PortfolioItem]:
        """
        Reprice every lot of owner_id in symbol.

        All rows are rewritten in a single transaction; if any write fails the
        whole batch is rolled back.
        """
        as_of = now_local()
        with self._transaction("bulk_update_by_symbol") as session:
            rows = session.scalars(
                select(PortfolioItemORM)
                .where(
                    PortfolioItemORM.owner_id == owner_id,
                    PortfolioItemORM.symbol == symbol,
                )
                .with_for_update()
            ).all()

            updated: list[PortfolioItem] = []
            for row in rows:
                repriced = revalue(self._to_domain(row), new_price, as_of)
                for column, value in self._to_columns(repriced).items():
                    setattr(row, column, value)
                row.version = row.version + 1
                repriced.version = row.version
                updated.append(repriced)
            return updated

    @staticmethod
    def _to_columns(item: PortfolioItem) -> dict:
        """Map a domain item to ORM column values (excluding key and version)."""
        metadata = item.metadata or DepositMetadata()
        return {
            "owner_id": item.owner_id,
            "instrument_type": item.instrument_type,
            "symbol": item.symbol,
            "display_name": item.display_name,
            "quantity": item.quantity,
            "purchase_price": item.purchase_price,
            "current_price": item.current_price,
            "total_value": item.total_value,
            "total_return": item.total_return,
            "return_percentage": item.return_percentage,
            "purchase_date": item.purchase_date,
            "annual_interest_rate": metadata.annual_interest_rate,
            "tax_exempt_percentage": metadata.tax_exempt_percentage,
            "maturity_date": metadata.maturity_date,
            "bank_name": metadata.bank_name,
            "created_at": _to_stored(item.created_at) or _to_stored(now_local()),
            "updated_at": _to_stored(item.updated_at),
            "last_updated": _to_stored(item.last_updated),
        }

    @staticmethod
    def _to_domain(orm: PortfolioItemORM) -> PortfolioItem:
        """Convert ORM item to domain model."""
        has_metadata = any(
            value is not None
            for value in (
                orm.annual_interest_rate,
                orm.tax_exempt_percentage,
                orm.maturity_date,
                orm.bank_name,
            )
        )
        metadata = (
            DepositMetadata(
                annual_interest_rate=_decimal_or_none(orm.annual_interest_rate),
                tax_exempt_percentage=_decimal_or_none(orm.tax_exempt_percentage),
                maturity_date=orm.maturity_date,
                bank_name=orm.bank_name,
            )
            if has_metadata
            else None
        )
        return PortfolioItem(
            item_id=orm.item_id,
            owner_id=orm.owner_id,
            instrument_type=orm.instrument_type,
            symbol=orm.symbol,
            display_name=orm.display_name,
            quantity=_decimal(orm.quantity),
            purchase_price=_decimal(orm.purchase_price),
            current_price=_decimal(orm.current_price),
            total_value=_decimal(orm.total_value),
            total_return=_decimal(orm.total_return),
            return_percentage=_decimal(orm.return_percentage),
            purchase_date=orm.purchase_date,
            metadata=metadata,
            created_at=_from_stored(orm.created_at),
            updated_at=_from_stored(orm.updated_at),
            last_updated=_from_stored(orm.last_updated),
            version=orm.version,
        )


def _decimal(value) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


def _decimal_or_none(value) -> Optional[Decimal]:
    return Decimal(str(value)) if value is not None else None


def _to_stored(dt: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo, so timestamps are stored as local wall-clock time
    return to_local(dt) if dt is not None else None


def _from_stored(dt: Optional[datetime]) -> Optional[datetime]:
    return to_local(dt) if dt is not None else None
