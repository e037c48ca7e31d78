# stocky/database/tables/ledger_entry.py

from sqlalchemy import Column, BigInteger, Integer, String, ForeignKey, Index, CheckConstraint

from ..base import DBBaseModel, CreatedAtMixin
from ..types import DecimalType


class DBLedgerEntry(DBBaseModel, CreatedAtMixin):
    __tablename__ = 'ledger_entries'

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    reward_id = Column(String(36), ForeignKey('reward.id'), nullable=False)
    event_type = Column(String(16), nullable=False)
    user_id = Column(String(128), nullable=False)
    stock_symbol = Column(String(32), nullable=False)
    shares = Column(DecimalType(precision=20, scale=6), nullable=False)
    inr_amount = Column(DecimalType(), nullable=False)
    fee_type = Column(String(16), nullable=False, default='')

    __table_args__ = (
        CheckConstraint("event_type IN ('reward', 'fee')", name='ck_ledger_event_type'),
        CheckConstraint("fee_type IN ('', 'brokerage', 'STT')", name='ck_ledger_fee_type'),
        Index('idx_ledger_entries_reward_id', 'reward_id'),
        Index('idx_ledger_entries_user_id', 'user_id'),
    )

    def __repr__(self) -> str:
        return f"<LedgerEntry(reward={self.reward_id}, {self.event_type}/{self.fee_type or '-'}, inr={self.inr_amount})>"
