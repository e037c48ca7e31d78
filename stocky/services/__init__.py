# stocky/services/__init__.py

from .idempotency_guard import IdempotencyGuard
from .price_cache import PriceCache
from .price_refresher import PriceRefresher
from .ledger_writer import LedgerWriter
from .valuation_service import ValuationService
from .reward_service import RewardService

__all__ = [
    'IdempotencyGuard',
    'PriceCache',
    'PriceRefresher',
    'LedgerWriter',
    'ValuationService',
    'RewardService',
]
