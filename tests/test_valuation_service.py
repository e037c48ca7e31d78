# tests/test_valuation_service.py

from decimal import Decimal

import pytest

from stocky.core.errors import ValidationError
from stocky.types import CreateRewardRequest

from tests.fakes import FailingPriceSource


@pytest.fixture
def seeded(reward_service):
    def add(symbol, shares, rewarded_at, user_id="u1"):
        req = CreateRewardRequest(stock_symbol=symbol, shares=shares, rewarded_at=rewarded_at)
        return reward_service.create_reward(user_id, req)

    add("RELIANCE", "1.5", "2025-09-23T09:00:00Z")
    add("TCS", "0.25", "2025-09-23T15:00:00Z")
    add("RELIANCE", "2", "2025-09-24T10:00:00Z")
    add("TCS", "1", "2025-09-25T08:00:00Z")
    add("INFY", "3.333333", "2025-09-25T11:00:00Z")
    add("RELIANCE", "100", "2025-09-25T11:00:00Z", user_id="u2")
    return reward_service


def test_portfolio_total_is_sum_of_holdings(seeded):
    portfolio = seeded.get_portfolio("u1")

    assert [h.symbol for h in portfolio.holdings] == ["INFY", "RELIANCE", "TCS"]
    assert portfolio.portfolio_total_inr == sum(h.total_value_inr for h in portfolio.holdings)

    tcs = portfolio.holdings[2]
    assert tcs.total_shares == Decimal("1.25")
    assert tcs.current_price == Decimal("3500.50")
    assert tcs.total_value_inr == Decimal("4375.625")
    assert portfolio.holdings[0].total_value_inr == Decimal("833.33325")


def test_empty_portfolio(seeded):
    portfolio = seeded.get_portfolio("nobody")

    assert portfolio.holdings == []
    assert portfolio.portfolio_total_inr == Decimal(0)


def test_stats_today_and_all(seeded):
    today = seeded.get_stats("u1", "today")
    assert today.scope == "today"
    assert today.shares_by_symbol == {"TCS": Decimal("1"), "INFY": Decimal("3.333333")}
    assert today.portfolio_value_inr == Decimal("3500.50") + Decimal("3.333333") * Decimal("250.00")

    everything = seeded.get_stats("u1")
    assert everything.shares_by_symbol == {
        "RELIANCE": Decimal("3.5"),
        "TCS": Decimal("1.25"),
        "INFY": Decimal("3.333333"),
    }


def test_stats_rejects_unknown_scope(seeded):
    with pytest.raises(ValidationError):
        seeded.get_stats("u1", "week")


def test_historical_has_one_point_per_reward_date(seeded):
    points = seeded.get_historical_inr("u1", "2000-01-01T00:00:00Z", "2100-01-01T00:00:00Z")

    assert [str(p.date) for p in points] == ["2025-09-23", "2025-09-24", "2025-09-25"]
    assert points[0].inr_value == Decimal("1.5") * Decimal("250.00") + Decimal("0.25") * Decimal("3500.50")
    assert points[1].inr_value == Decimal("500.00")
    assert not any(p.is_stale for p in points)


def test_historical_range_and_pagination(seeded):
    window = seeded.get_historical_inr("u1", "2025-09-24T00:00:00Z", "2025-09-25T23:59:59Z")
    assert [str(p.date) for p in window] == ["2025-09-24", "2025-09-25"]

    page_two = seeded.get_historical_inr("u1", page=2, size=2)
    assert [str(p.date) for p in page_two] == ["2025-09-25"]
    assert seeded.get_historical_inr("u1", page=3, size=2) == []


def test_historical_flags_stale_prices(seeded, price_cache, cache, clock):
    # Cache emptied and the source down, so the durable quote is served
    cache._data.clear()
    with seeded.db_manager.get_transaction() as session:
        seeded.db_manager.get_stock_price_repo().upsert_latest(
            session, "RELIANCE", Decimal("240"), clock().replace(year=2024))
    price_cache.source = FailingPriceSource()

    points = seeded.get_historical_inr("u1", "2025-09-24T00:00:00Z", "2025-09-24T23:59:59Z")

    assert points[0].inr_value == Decimal("480")
    assert points[0].is_stale is True


@pytest.mark.parametrize("kwargs", [
    {"page": 0},
    {"size": 0},
    {"start": "2025-09-25T00:00:00Z", "end": "2025-09-24T00:00:00Z"},
])
def test_historical_rejects_bad_arguments(seeded, kwargs):
    with pytest.raises(ValidationError):
        seeded.get_historical_inr("u1", **kwargs)

