# stocky/database/tables/__init__.py

from .reward import DBReward
from .ledger_entry import DBLedgerEntry
from .stock_price import DBStockPrice, DBStockPriceHistory

__all__ = [
    'DBReward',
    'DBLedgerEntry',
    'DBStockPrice',
    'DBStockPriceHistory',
]
