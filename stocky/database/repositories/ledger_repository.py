# stocky/database/repositories/ledger_repository.py

from decimal import Decimal
from typing import List

from sqlalchemy.orm import Session

from ..tables.ledger_entry import DBLedgerEntry
from ..base_repository import BaseRepository
from ...core.logging import log_with_context, DEBUG
from ...types import (
    NewReward,
    EVENT_TYPE_REWARD,
    EVENT_TYPE_FEE,
    FEE_TYPE_NONE,
    FEE_TYPE_BROKERAGE,
    FEE_TYPE_STT,
)


class LedgerRepository(BaseRepository[DBLedgerEntry]):
    """Append-only double-entry rows tied to a reward"""

    def __init__(self, db_manager):
        super().__init__(db_manager, DBLedgerEntry)

    def record_reward_entries(
        self,
        session: Session,
        reward: NewReward,
        notional: Decimal,
        brokerage_rate: Decimal,
        stt_rate: Decimal,
    ) -> int:
        """
        Write the principal row and both fee rows for a reward.

        Amounts are exact decimal products, nothing is quantized here.
        """
        common = {
            'reward_id': reward.id,
            'user_id': reward.user_id,
            'stock_symbol': reward.stock_symbol,
            'shares': reward.shares,
            'created_at': reward.created_at,
        }
        entries = [
            dict(common, event_type=EVENT_TYPE_REWARD, inr_amount=notional, fee_type=FEE_TYPE_NONE),
            dict(common, event_type=EVENT_TYPE_FEE, inr_amount=notional * brokerage_rate, fee_type=FEE_TYPE_BROKERAGE),
            dict(common, event_type=EVENT_TYPE_FEE, inr_amount=notional * stt_rate, fee_type=FEE_TYPE_STT),
        ]
        count = self.bulk_create(session, entries)

        log_with_context(self.logger, DEBUG, "Ledger entries recorded",
                         reward_id=reward.id, entries=count, notional=str(notional))
        return count

    def list_for_reward(self, session: Session, reward_id: str) -> List[DBLedgerEntry]:
        return session.query(DBLedgerEntry).filter(
            DBLedgerEntry.reward_id == reward_id
        ).order_by(DBLedgerEntry.id).all()

