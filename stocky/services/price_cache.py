# stocky/services/price_cache.py

from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..clients.interfaces import CacheStore, PriceSource, PriceSourceError
from ..core.errors import StorageError
from ..core.logging import StockyLogger, log_with_context, INFO, DEBUG, WARNING
from ..database.connection import DatabaseManager
from ..types import PriceQuote
from ..utils.convert_time import to_timestamp_us, from_timestamp_us


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PriceCache:
    """
    Time-bounded price cache shared by every process.

    Quotes are stored as ``<price>|<updated_at in microseconds>`` under
    ``price:<symbol>`` with the cache TTL. All writes go through the store's
    set_if_newer so a quote never replaces one with a later timestamp,
    whichever of the on-demand fill or the refresher gets there first.

    When the price source fails on a miss, the last durable quote from
    stock_prices is served instead (and will normally be stale).
    """

    KEY_PREFIX = "price:"

    def __init__(
        self,
        cache: CacheStore,
        source: PriceSource,
        ttl_seconds: int = 7200,
        db_manager: Optional[DatabaseManager] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.cache = cache
        self.source = source
        self.ttl = timedelta(seconds=ttl_seconds)
        self.ttl_seconds = ttl_seconds
        self.db_manager = db_manager
        self.clock = clock
        self.logger = StockyLogger.get_logger('services.price_cache')

    def get_price(self, symbol: str) -> PriceQuote:
        cached = self._read(symbol)
        now = self.clock()
        if cached is not None and not self.is_stale(cached, now):
            return cached

        log_with_context(self.logger, DEBUG, "Price cache miss",
                         symbol=symbol, expired=cached is not None)

        try:
            quote = self.source.fetch_quote(symbol, now)
        except PriceSourceError as e:
            return self._durable_fallback(symbol, e)

        return self.store_quote(quote)

    def refresh(self, symbol: str) -> PriceQuote:
        """Regenerate the quote unconditionally (used by the background refresher)"""
        quote = self.source.fetch_quote(symbol, self.clock())
        return self.store_quote(quote)

    def store_quote(self, quote: PriceQuote) -> PriceQuote:
        """
        Write a quote unless a newer one is already cached.

        Returns the quote that is current after the write attempt.
        """
        timestamp_us = to_timestamp_us(quote.updated_at)
        value = f"{quote.price}|{timestamp_us}"
        written = self.cache.set_if_newer(self._cache_key(quote.symbol), value, timestamp_us, self.ttl_seconds)
        if written:
            return quote

        current = self._read(quote.symbol)
        log_with_context(self.logger, DEBUG, "Newer quote already cached, keeping it",
                         symbol=quote.symbol,
                         rejected_updated_at=quote.updated_at.isoformat())
        return current or quote

    def is_stale(self, quote: PriceQuote, now: Optional[datetime] = None) -> bool:
        now = now or self.clock()
        return now - quote.updated_at > self.ttl

    def _cache_key(self, symbol: str) -> str:
        return f"{self.KEY_PREFIX}{symbol}"

    def _read(self, symbol: str) -> Optional[PriceQuote]:
        raw = self.cache.get(self._cache_key(symbol))
        if raw is None:
            return None
        try:
            price_text, timestamp_text = raw.rsplit("|", 1)
            return PriceQuote(
                symbol=symbol,
                price=Decimal(price_text),
                updated_at=from_timestamp_us(int(timestamp_text)),
            )
        except (ValueError, InvalidOperation):
            log_with_context(self.logger, WARNING, "Discarding malformed cached price",
                             symbol=symbol, raw=raw)
            return None

    def _durable_fallback(self, symbol: str, error: Exception) -> PriceQuote:
        if self.db_manager is not None:
            try:
                with self.db_manager.get_session() as session:
                    row = self.db_manager.get_stock_price_repo().get_latest(session, symbol)
            except SQLAlchemyError as e:
                raise StorageError(f"price lookup failed for {symbol}: {e}") from e
            if row is not None:
                log_with_context(self.logger, WARNING, "Price source failed, serving durable quote",
                                 symbol=symbol, error=str(error),
                                 updated_at=row.updated_at.isoformat())
                return PriceQuote(symbol=symbol, price=row.price, updated_at=row.updated_at)

        log_with_context(self.logger, INFO, "No price available", symbol=symbol, error=str(error))
        raise StorageError(f"no price available for {symbol}: {error}") from error
