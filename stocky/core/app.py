# stocky/core/app.py

import threading
from decimal import Decimal
from typing import Optional

from .config import StockyConfig
from .logging import StockyLogger, log_with_context, INFO, WARNING
from ..clients.interfaces import CacheStore, PriceSource
from ..clients.publisher import EventPublisher
from ..database.connection import DatabaseManager
from ..services.idempotency_guard import IdempotencyGuard
from ..services.ledger_writer import LedgerWriter
from ..services.price_cache import PriceCache
from ..services.price_refresher import PriceRefresher
from ..services.reward_service import RewardService
from ..services.valuation_service import ValuationService


class StockyApp:
    """
    Explicitly wired service graph for one process.

    Holds the store handles and every service built on them; nothing here is
    a module-level global. The refresher is created stopped and shares the
    app's shutdown event.
    """

    def __init__(
        self,
        config: StockyConfig,
        db_manager: DatabaseManager,
        cache: CacheStore,
        publisher: EventPublisher,
        price_source: PriceSource,
    ):
        self.config = config
        self.db_manager = db_manager
        self.cache = cache
        self.publisher = publisher
        self.shutdown_event = threading.Event()
        self.logger = StockyLogger.get_logger('core.app')

        self.price_cache = PriceCache(
            cache=cache,
            source=price_source,
            ttl_seconds=config.pricing.ttl_seconds,
            db_manager=db_manager,
        )
        self.guard = IdempotencyGuard(
            cache,
            ttl_seconds=config.ledger.idempotency_ttl_seconds,
            pending_ttl_seconds=config.ledger.idempotency_pending_ttl_seconds,
        )
        self.ledger_writer = LedgerWriter(
            db_manager=db_manager,
            price_cache=self.price_cache,
            publisher=publisher,
            brokerage_rate=Decimal(config.ledger.brokerage_rate),
            stt_rate=Decimal(config.ledger.stt_rate),
        )
        self.valuation = ValuationService(db_manager, self.price_cache)
        self.reward_service = RewardService(
            db_manager=db_manager,
            guard=self.guard,
            ledger_writer=self.ledger_writer,
            valuation=self.valuation,
        )
        self.refresher = PriceRefresher(
            price_cache=self.price_cache,
            db_manager=db_manager,
            interval_seconds=config.pricing.refresh_interval_seconds,
            tracked_symbols=config.pricing.tracked_symbols,
            stop_event=self.shutdown_event,
        )

    def shutdown(self, timeout: Optional[float] = 30) -> None:
        log_with_context(self.logger, INFO, "Shutting down stocky")
        self.shutdown_event.set()
        self.refresher.stop(timeout=timeout)

        for name, closer in (("publisher", self.publisher.close),
                             ("cache", getattr(self.cache, "close", None)),
                             ("database", self.db_manager.shutdown)):
            if closer is None:
                continue
            try:
                closer()
            except Exception as e:
                log_with_context(self.logger, WARNING, "Error during shutdown",
                                 component=name, error=str(e))
