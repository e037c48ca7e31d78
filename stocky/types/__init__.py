# stocky/types/__init__.py

# Configuration Types
from .configs import (
    DatabaseConfig,
    RedisConfig,
    PricingConfig,
    LedgerConfig,
    PublisherConfig,
)

# Reward Types
from .reward import (
    REWARD_STATUS_ACTIVE,
    EVENT_TYPE_REWARD,
    EVENT_TYPE_FEE,
    FEE_TYPE_NONE,
    FEE_TYPE_BROKERAGE,
    FEE_TYPE_STT,
    CreateRewardRequest,
    NewReward,
    Reward,
    CreateRewardResult,
    IdempotentOutcome,
    IdempotencyClaim,
    PriceQuote,
    RewardCreatedEvent,
    Holding,
    Portfolio,
    Stats,
    HistoricalINR,
)
