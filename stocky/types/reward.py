# stocky/types/reward.py

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional

import msgspec
from msgspec import Struct


REWARD_STATUS_ACTIVE = "active"

EVENT_TYPE_REWARD = "reward"
EVENT_TYPE_FEE = "fee"

FEE_TYPE_NONE = ""
FEE_TYPE_BROKERAGE = "brokerage"
FEE_TYPE_STT = "STT"


class CreateRewardRequest(Struct):
    stock_symbol: str
    shares: str
    rewarded_at: str


class NewReward(Struct):
    """A validated reward ready for the ledger writer"""
    id: str
    user_id: str
    stock_symbol: str
    shares: Decimal
    rewarded_at: datetime
    created_at: datetime
    unique_hash: str
    idempotency_key: Optional[str] = None
    status: str = REWARD_STATUS_ACTIVE


class Reward(Struct):
    id: str
    user_id: str
    stock_symbol: str
    shares: Decimal
    rewarded_at: datetime
    created_at: datetime
    unique_hash: str
    idempotency_key: Optional[str]
    status: str


class CreateRewardResult(Struct):
    reward_id: str
    status: str = "success"
    replayed: bool = False


class IdempotentOutcome(Struct):
    """What gets stored against an idempotency key"""
    status: Literal["pending", "created", "conflict"]
    reward_id: Optional[str] = None

    def encode(self) -> str:
        return msgspec.json.encode(self).decode("utf-8")

    @classmethod
    def decode(cls, raw: str) -> "IdempotentOutcome":
        return msgspec.json.decode(raw, type=cls)


class IdempotencyClaim(Struct):
    claimed: bool
    prior_result: Optional[IdempotentOutcome] = None


class PriceQuote(Struct):
    symbol: str
    price: Decimal
    updated_at: datetime


class RewardCreatedEvent(Struct):
    reward_id: str
    user_id: str
    stock_symbol: str
    shares: str
    rewarded_at: str
    correlation_id: str


class Holding(Struct):
    symbol: str
    total_shares: Decimal
    current_price: Decimal
    total_value_inr: Decimal


class Portfolio(Struct):
    holdings: List[Holding]
    portfolio_total_inr: Decimal


class Stats(Struct):
    scope: Literal["all", "today"]
    shares_by_symbol: Dict[str, Decimal]
    portfolio_value_inr: Decimal


class HistoricalINR(Struct):
    date: date
    inr_value: Decimal
    is_stale: bool
