# stocky/database/tables/reward.py

from sqlalchemy import Column, String, Index, UniqueConstraint

from ..base import DBBaseModel, CreatedAtMixin
from ..types import DecimalType, UTCDateTime
from ...types import REWARD_STATUS_ACTIVE


class DBReward(DBBaseModel, CreatedAtMixin):
    __tablename__ = 'reward'

    id = Column(String(36), primary_key=True)
    user_id = Column(String(128), nullable=False)
    stock_symbol = Column(String(32), nullable=False)
    shares = Column(DecimalType(precision=20, scale=6), nullable=False)
    rewarded_at = Column(UTCDateTime(), nullable=False)
    unique_hash = Column(String(64), nullable=False)
    idempotency_key = Column(String(255), nullable=True)
    status = Column(String(16), nullable=False, default=REWARD_STATUS_ACTIVE)

    __table_args__ = (
        UniqueConstraint('unique_hash', name='uq_reward_unique_hash'),
        UniqueConstraint('idempotency_key', name='uq_reward_idempotency_key'),
        Index('idx_reward_user_rewarded_at', 'user_id', 'rewarded_at'),
        Index('idx_reward_stock_symbol', 'stock_symbol'),
    )

    def __repr__(self) -> str:
        return f"<Reward(id={self.id}, user={self.user_id}, {self.shares} {self.stock_symbol})>"
