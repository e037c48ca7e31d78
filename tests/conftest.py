# tests/conftest.py
"""
pytest fixtures for the reward ledger.

Every test gets a fresh in-memory SQLite database, an in-memory cache store
and a fixed clock. Nothing here needs Redis, PostgreSQL or Pub/Sub.
"""

from decimal import Decimal

import pytest

from stocky.core.logging import StockyLogger
from stocky.database.connection import DatabaseManager
from stocky.services import (
    IdempotencyGuard,
    LedgerWriter,
    PriceCache,
    PriceRefresher,
    RewardService,
    ValuationService,
)
from stocky.types import DatabaseConfig

from tests.fakes import FakeClock, FixedPriceSource, InMemoryCacheStore, RecordingPublisher


@pytest.fixture(scope="session", autouse=True)
def quiet_logging():
    StockyLogger.reset()
    StockyLogger.configure(log_level="DEBUG", console_enabled=False, file_enabled=False)
    yield
    StockyLogger.reset()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return InMemoryCacheStore(clock)


@pytest.fixture
def db_manager():
    manager = DatabaseManager(DatabaseConfig(url="sqlite:///:memory:"))
    manager.initialize()
    manager.create_tables()
    yield manager
    manager.shutdown()


@pytest.fixture
def price_source():
    return FixedPriceSource("250.00", overrides={"TCS": "3500.50"})


@pytest.fixture
def price_cache(cache, price_source, db_manager, clock):
    return PriceCache(cache, price_source, ttl_seconds=7200, db_manager=db_manager, clock=clock)


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def guard(cache):
    return IdempotencyGuard(cache, ttl_seconds=86400)


@pytest.fixture
def ledger_writer(db_manager, price_cache, publisher):
    return LedgerWriter(
        db_manager=db_manager,
        price_cache=price_cache,
        publisher=publisher,
        brokerage_rate=Decimal("0.001"),
        stt_rate=Decimal("0.00025"),
    )


@pytest.fixture
def valuation(db_manager, price_cache, clock):
    return ValuationService(db_manager, price_cache, clock=clock)


@pytest.fixture
def reward_service(db_manager, guard, ledger_writer, valuation, clock):
    return RewardService(db_manager, guard, ledger_writer, valuation, clock=clock)


@pytest.fixture
def refresher(price_cache, db_manager):
    return PriceRefresher(price_cache, db_manager, interval_seconds=3600, tracked_symbols=["RELIANCE", "INFY"])
