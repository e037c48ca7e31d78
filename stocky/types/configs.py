# stocky/types/configs.py

from typing import List, Optional

from msgspec import Struct


class DatabaseConfig(Struct):
    url: str
    pool_size: int = 5
    max_overflow: int = 10
    statement_timeout_ms: int = 5000


class RedisConfig(Struct):
    url: str = "redis://127.0.0.1:6379/0"
    socket_timeout: float = 2.0


class PricingConfig(Struct):
    ttl_seconds: int = 7200
    refresh_interval_seconds: int = 3600
    tracked_symbols: List[str] = []
    min_price: str = "100"
    max_price: str = "1100"


class LedgerConfig(Struct):
    brokerage_rate: str = "0.001"
    stt_rate: str = "0.00025"
    idempotency_ttl_seconds: int = 86400
    idempotency_pending_ttl_seconds: int = 300


class PublisherConfig(Struct):
    project_id: Optional[str] = None
    topic: str = "reward-events"
    timeout_seconds: float = 5.0
    subscription: str = "reward-events-tail"
