# tests/test_clients.py

import random
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import redis

from stocky.clients.price_source import SimulatedPriceSource
from stocky.clients.redis_cache import RedisCacheStore
from stocky.core.errors import StorageError
from stocky.types import RedisConfig


@pytest.fixture
def redis_client():
    return MagicMock(spec=redis.Redis)


@pytest.fixture
def store(redis_client):
    return RedisCacheStore(RedisConfig(url="redis://localhost:6379/0"), client=redis_client)


def test_set_if_absent_is_one_atomic_set(store, redis_client):
    redis_client.set.return_value = True

    assert store.set_if_absent("idempotency:k", "v", 60) is True
    redis_client.set.assert_called_once_with("idempotency:k", "v", ex=60, nx=True)


def test_set_if_absent_reports_existing_key(store, redis_client):
    redis_client.set.return_value = None

    assert store.set_if_absent("idempotency:k", "v", 60) is False


def test_set_if_newer_runs_script(store, redis_client):
    script = redis_client.register_script.return_value
    script.return_value = 0

    assert store.set_if_newer("price:TCS", "10|5", 5, 7200) is False
    script.assert_called_once_with(keys=["price:TCS"], args=["10|5", 5, 7200])


def test_redis_errors_become_storage_errors(store, redis_client):
    redis_client.get.side_effect = redis.ConnectionError("connection refused")

    with pytest.raises(StorageError):
        store.get("price:TCS")


def test_ping_failure_is_false(store, redis_client):
    redis_client.ping.side_effect = redis.TimeoutError("timed out")

    assert store.ping() is False


def test_simulated_prices_stay_in_range():
    source = SimulatedPriceSource(Decimal("100"), Decimal("1100"), rng=random.Random(7))
    as_of = datetime(2025, 9, 25, tzinfo=timezone.utc)

    for _ in range(200):
        quote = source.fetch_quote("RELIANCE", as_of)
        assert Decimal("100") <= quote.price < Decimal("1100")
        assert quote.price == quote.price.quantize(Decimal("0.01"))
        assert quote.updated_at == as_of


def test_simulated_source_rejects_bad_range():
    with pytest.raises(ValueError):
        SimulatedPriceSource(Decimal("10"), Decimal("5"))
