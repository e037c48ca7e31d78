# tests/test_ledger_writer.py

import threading
import uuid
from datetime import datetime, timezone
from decimal import Decimal

import msgspec
import pytest

from stocky.core.errors import ConflictError, OperationCancelled
from stocky.database.tables import DBLedgerEntry, DBReward
from stocky.services import LedgerWriter
from stocky.types import NewReward, RewardCreatedEvent
from stocky.utils.reward_hash import create_reward_hash

from tests.fakes import BrokenTransportPublisher, FailingPublisher


def make_reward(clock, shares="2.5", symbol="TCS", key=None, unique_hash=None) -> NewReward:
    rewarded_at = "2025-09-25T10:00:00Z"
    return NewReward(
        id=str(uuid.uuid4()),
        user_id="u1",
        stock_symbol=symbol,
        shares=Decimal(shares),
        rewarded_at=datetime(2025, 9, 25, 10, 0, tzinfo=timezone.utc),
        created_at=clock(),
        unique_hash=unique_hash or create_reward_hash("u1", symbol, shares, rewarded_at),
        idempotency_key=key,
    )


def test_writes_reward_and_three_ledger_entries(ledger_writer, db_manager, clock):
    reward = make_reward(clock)
    ledger_writer.create_reward(reward)

    with db_manager.get_session() as session:
        entries = db_manager.get_ledger_repo().list_for_reward(session, reward.id)

    amounts = {(e.event_type, e.fee_type): e.inr_amount for e in entries}
    # 2.5 x 3500.50
    assert amounts == {
        ("reward", ""): Decimal("8751.250"),
        ("fee", "brokerage"): Decimal("8.75125"),
        ("fee", "STT"): Decimal("2.1878125"),
    }
    assert all(e.shares == Decimal("2.5") for e in entries)


def test_publishes_event_after_commit(ledger_writer, publisher, clock):
    reward = make_reward(clock, key="idem-1")
    ledger_writer.create_reward(reward)

    (topic, key, payload, headers), = publisher.messages
    event = msgspec.json.decode(payload, type=RewardCreatedEvent)
    assert topic == "reward-events"
    assert key == "u1"
    assert headers == {"correlation_id": "idem-1"}
    assert event.reward_id == reward.id
    assert event.shares == "2.5"
    assert event.rewarded_at == "2025-09-25T10:00:00Z"


def test_publish_failure_keeps_committed_rows(db_manager, price_cache, clock, caplog):
    publisher = FailingPublisher()
    writer = LedgerWriter(db_manager, price_cache, publisher)
    reward = make_reward(clock)

    assert writer.create_reward(reward) == reward.id
    assert publisher.attempts == 1
    assert "RewardCreated event not delivered" in caplog.text
    with db_manager.get_session() as session:
        assert session.get(DBReward, reward.id) is not None


def test_unexpected_publish_error_does_not_escape_commit(db_manager, price_cache, clock, caplog):
    writer = LedgerWriter(db_manager, price_cache, BrokenTransportPublisher())
    reward = make_reward(clock)

    assert writer.create_reward(reward) == reward.id
    assert "RewardCreated publish raised unexpectedly" in caplog.text
    with db_manager.get_session() as session:
        assert session.get(DBReward, reward.id) is not None


def test_cancelled_before_start_writes_nothing(ledger_writer, db_manager, publisher, clock):
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(OperationCancelled):
        ledger_writer.create_reward(make_reward(clock), cancel_event=cancel)

    with db_manager.get_session() as session:
        assert session.query(DBReward).count() == 0
    assert publisher.messages == []


def test_cancelled_mid_transaction_rolls_back(ledger_writer, db_manager, price_cache, publisher, clock, monkeypatch):
    cancel = threading.Event()
    original_get_price = price_cache.get_price

    def get_price_then_cancel(symbol):
        quote = original_get_price(symbol)
        cancel.set()
        return quote

    monkeypatch.setattr(price_cache, "get_price", get_price_then_cancel)

    with pytest.raises(OperationCancelled):
        ledger_writer.create_reward(make_reward(clock), cancel_event=cancel)

    with db_manager.get_session() as session:
        assert session.query(DBReward).count() == 0
        assert session.query(DBLedgerEntry).count() == 0
    assert publisher.messages == []


def test_duplicate_hash_surfaces_existing_id(ledger_writer, db_manager, clock):
    first = make_reward(clock)
    ledger_writer.create_reward(first)

    with pytest.raises(ConflictError) as exc_info:
        ledger_writer.create_reward(make_reward(clock, unique_hash=first.unique_hash))

    assert exc_info.value.reward_id == first.id
    with db_manager.get_session() as session:
        assert session.query(DBReward).count() == 1
        assert session.query(DBLedgerEntry).count() == 3


def test_duplicate_idempotency_key_surfaces_existing_id(ledger_writer, clock):
    first = make_reward(clock, key="idem-9")
    ledger_writer.create_reward(first)

    with pytest.raises(ConflictError) as exc_info:
        ledger_writer.create_reward(make_reward(clock, shares="3", key="idem-9"))

    assert exc_info.value.reward_id == first.id
