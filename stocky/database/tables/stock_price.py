# stocky/database/tables/stock_price.py

from sqlalchemy import Column, BigInteger, Integer, String, Index

from ..base import DBBaseModel
from ..types import DecimalType, UTCDateTime


class DBStockPrice(DBBaseModel):
    """Latest known quote per symbol"""
    __tablename__ = 'stock_prices'

    symbol = Column(String(32), primary_key=True)
    price = Column(DecimalType(precision=20, scale=8), nullable=False)
    updated_at = Column(UTCDateTime(), nullable=False)

    def __repr__(self) -> str:
        return f"<StockPrice({self.symbol}={self.price} @ {self.updated_at})>"


class DBStockPriceHistory(DBBaseModel):
    """Every refreshed quote, kept for audit"""
    __tablename__ = 'stock_price_history'

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    symbol = Column(String(32), nullable=False)
    price = Column(DecimalType(precision=20, scale=8), nullable=False)
    updated_at = Column(UTCDateTime(), nullable=False)

    __table_args__ = (
        Index('idx_stock_price_history_symbol_updated', 'symbol', 'updated_at'),
    )
