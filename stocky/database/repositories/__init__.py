# stocky/database/repositories/__init__.py

from .reward_repository import RewardRepository
from .ledger_repository import LedgerRepository
from .stock_price_repository import StockPriceRepository

__all__ = [
    'RewardRepository',
    'LedgerRepository',
    'StockPriceRepository',
]
