# stocky/services/price_refresher.py

import threading
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..clients.interfaces import PriceSourceError
from ..core.errors import StorageError
from ..core.logging import LoggingMixin
from ..database.connection import DatabaseManager
from .price_cache import PriceCache


class PriceRefresher(LoggingMixin):
    """
    Background task that regenerates every tracked quote on a fixed interval.

    Tracked symbols are the configured ones plus every symbol that has been
    rewarded. Each refreshed quote goes to the cache (timestamp guarded) and
    to stock_prices / stock_price_history. Several processes may run this at
    once; the duplicate work is harmless because older quotes never win.

    Lifecycle is explicit: start() launches one thread, stop() sets the stop
    event and joins it. An external threading.Event can be passed in so the
    process shutdown signal cancels the loop directly.
    """

    def __init__(
        self,
        price_cache: PriceCache,
        db_manager: DatabaseManager,
        interval_seconds: float = 3600,
        tracked_symbols: Optional[Iterable[str]] = None,
        stop_event: Optional[threading.Event] = None,
    ):
        self.price_cache = price_cache
        self.db_manager = db_manager
        self.interval_seconds = interval_seconds
        self.tracked_symbols = list(tracked_symbols or [])
        self.stop_event = stop_event or threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            self.log_warning("Price refresher already running")
            return

        self.stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name="stocky-price-refresher", daemon=True)
        self._thread.start()
        self.log_info("Price refresher started", interval_seconds=self.interval_seconds)

    def stop(self, timeout: Optional[float] = 30) -> None:
        self.stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                self.log_warning("Price refresher did not stop in time", timeout=timeout)
            self._thread = None
        self.log_info("Price refresher stopped")

    def run_forever(self) -> None:
        """Run the loop on the calling thread until the stop event is set"""
        self._run_loop()

    def _run_loop(self) -> None:
        while not self.stop_event.is_set():
            try:
                self.refresh_all()
            except StorageError as e:
                self.log_error("Price refresh cycle failed", error=str(e))
            # wait() returns True as soon as stop is requested
            if self.stop_event.wait(self.interval_seconds):
                break

    def symbols_to_refresh(self) -> List[str]:
        symbols = set(self.tracked_symbols)
        try:
            with self.db_manager.get_session() as session:
                symbols.update(self.db_manager.get_reward_repo().list_symbols(session))
        except SQLAlchemyError as e:
            raise StorageError(f"could not list rewarded symbols: {e}") from e
        return sorted(symbols)

    def refresh_all(self) -> Dict[str, int]:
        refreshed = 0
        failed = 0

        for symbol in self.symbols_to_refresh():
            if self.stop_event.is_set():
                break
            try:
                self.refresh_symbol(symbol)
                refreshed += 1
            except (StorageError, PriceSourceError) as e:
                failed += 1
                self.log_error("Failed to refresh price", symbol=symbol, error=str(e))

        self.log_info("Price refresh cycle complete", refreshed=refreshed, failed=failed)
        return {'refreshed': refreshed, 'failed': failed}

    def refresh_symbol(self, symbol: str):
        quote = self.price_cache.refresh(symbol)
        try:
            with self.db_manager.get_transaction() as session:
                repo = self.db_manager.get_stock_price_repo()
                repo.upsert_latest(session, quote.symbol, quote.price, quote.updated_at)
                repo.append_history(session, quote.symbol, quote.price, quote.updated_at)
        except SQLAlchemyError as e:
            raise StorageError(f"could not persist price for {symbol}: {e}") from e

        self.log_debug("Price refreshed", symbol=symbol, price=str(quote.price))
        return quote
