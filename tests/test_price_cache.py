# tests/test_price_cache.py

from datetime import timedelta
from decimal import Decimal

import pytest

from stocky.core.errors import StorageError
from stocky.services import PriceCache
from stocky.types import PriceQuote

from tests.fakes import FailingPriceSource, SequencePriceSource


def test_price_is_stable_within_ttl(cache, clock):
    source = SequencePriceSource(["101.00", "202.00"])
    price_cache = PriceCache(cache, source, ttl_seconds=7200, clock=clock)

    first = price_cache.get_price("RELIANCE")
    clock.advance(minutes=119)
    second = price_cache.get_price("RELIANCE")

    assert first.price == second.price == Decimal("101.00")
    assert source.calls == 1


def test_price_regenerates_after_ttl(cache, clock):
    source = SequencePriceSource(["101.00", "202.00"])
    price_cache = PriceCache(cache, source, ttl_seconds=7200, clock=clock)

    price_cache.get_price("RELIANCE")
    clock.advance(hours=2, seconds=1)

    assert price_cache.get_price("RELIANCE").price == Decimal("202.00")
    assert source.calls == 2


def test_older_quote_never_replaces_newer(price_cache, clock):
    newer = PriceQuote(symbol="INFY", price=Decimal("1500"), updated_at=clock())
    older = PriceQuote(symbol="INFY", price=Decimal("1400"), updated_at=clock() - timedelta(seconds=5))

    price_cache.store_quote(newer)
    current = price_cache.store_quote(older)

    assert current == newer
    assert price_cache.get_price("INFY") == newer


def test_quote_with_equal_timestamp_is_written(price_cache, clock):
    price_cache.store_quote(PriceQuote(symbol="INFY", price=Decimal("1500"), updated_at=clock()))
    price_cache.store_quote(PriceQuote(symbol="INFY", price=Decimal("1501"), updated_at=clock()))

    assert price_cache.get_price("INFY").price == Decimal("1501")


def test_refresh_bypasses_a_fresh_entry(cache, clock):
    source = SequencePriceSource(["101.00", "202.00"])
    price_cache = PriceCache(cache, source, clock=clock)

    price_cache.get_price("TCS")
    clock.advance(seconds=1)
    refreshed = price_cache.refresh("TCS")

    assert refreshed.price == Decimal("202.00")
    assert price_cache.get_price("TCS").price == Decimal("202.00")


def test_is_stale_uses_ttl(price_cache, clock):
    quote = PriceQuote(symbol="TCS", price=Decimal("1"), updated_at=clock())

    assert price_cache.is_stale(quote, clock() + timedelta(seconds=7200)) is False
    assert price_cache.is_stale(quote, clock() + timedelta(seconds=7201)) is True


def test_malformed_cache_value_is_treated_as_miss(price_cache, cache, price_source):
    cache.set("price:RELIANCE", "garbage", 60)

    assert price_cache.get_price("RELIANCE").price == Decimal("250.00")
    assert price_source.calls == ["RELIANCE"]


def test_source_failure_serves_durable_quote(cache, clock, db_manager):
    stored_at = clock() - timedelta(hours=5)
    with db_manager.get_transaction() as session:
        db_manager.get_stock_price_repo().upsert_latest(session, "HDFCBANK", Decimal("1620.25"), stored_at)

    price_cache = PriceCache(cache, FailingPriceSource(), db_manager=db_manager, clock=clock)
    quote = price_cache.get_price("HDFCBANK")

    assert quote.price == Decimal("1620.25")
    assert quote.updated_at == stored_at
    assert price_cache.is_stale(quote) is True


def test_source_failure_without_durable_quote_raises(cache, clock, db_manager):
    price_cache = PriceCache(cache, FailingPriceSource(), db_manager=db_manager, clock=clock)

    with pytest.raises(StorageError):
        price_cache.get_price("UNKNOWN")
