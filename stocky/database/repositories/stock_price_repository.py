# stocky/database/repositories/stock_price_repository.py

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session
from sqlalchemy.dialects import postgresql, sqlite

from ..tables.stock_price import DBStockPrice, DBStockPriceHistory
from ..base_repository import BaseRepository
from ...core.logging import log_with_context, DEBUG


class StockPriceRepository(BaseRepository[DBStockPrice]):
    """
    Durable quotes written by the price refresher.

    stock_prices keeps the latest quote per symbol and only moves forward
    in time; stock_price_history keeps every quote for audit.
    """

    def __init__(self, db_manager):
        super().__init__(db_manager, DBStockPrice)

    def upsert_latest(self, session: Session, symbol: str, price: Decimal, updated_at: datetime) -> bool:
        """Insert or replace the latest quote unless the stored one is newer"""
        dialect = session.get_bind().dialect.name
        insert = postgresql.insert if dialect == 'postgresql' else sqlite.insert

        stmt = insert(DBStockPrice).values(symbol=symbol, price=price, updated_at=updated_at)
        stmt = stmt.on_conflict_do_update(
            index_elements=[DBStockPrice.symbol],
            set_={'price': stmt.excluded.price, 'updated_at': stmt.excluded.updated_at},
            where=DBStockPrice.updated_at <= stmt.excluded.updated_at,
        )
        result = session.execute(stmt)
        applied = result.rowcount > 0

        log_with_context(self.logger, DEBUG, "Latest stock price upserted",
                         symbol=symbol, price=str(price), applied=applied)
        return applied

    def append_history(self, session: Session, symbol: str, price: Decimal, updated_at: datetime) -> None:
        session.add(DBStockPriceHistory(symbol=symbol, price=price, updated_at=updated_at))
        session.flush()

    def get_latest(self, session: Session, symbol: str) -> Optional[DBStockPrice]:
        return session.get(DBStockPrice, symbol)

    def count_history(self, session: Session, symbol: str) -> int:
        return session.query(DBStockPriceHistory).filter(
            DBStockPriceHistory.symbol == symbol
        ).count()
