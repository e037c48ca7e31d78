# stocky/database/repositories/reward_repository.py

from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_, distinct
from sqlalchemy.orm import Session

from ..tables.reward import DBReward
from ..base_repository import BaseRepository
from ...core.logging import log_with_context, DEBUG, ERROR
from ...types import NewReward


class RewardRepository(BaseRepository[DBReward]):
    """
    Repository for the append-only reward table.

    Uniqueness of unique_hash and idempotency_key is enforced by the table,
    so insert() raises IntegrityError for a duplicate and the caller decides
    how to surface it.
    """

    def __init__(self, db_manager):
        super().__init__(db_manager, DBReward)

    def insert(self, session: Session, reward: NewReward) -> DBReward:
        record = DBReward.from_msgspec(reward, idempotency_key=reward.idempotency_key or None)
        session.add(record)
        session.flush()

        log_with_context(self.logger, DEBUG, "Reward row inserted",
                         reward_id=reward.id, user_id=reward.user_id, symbol=reward.stock_symbol)
        return record

    def find_existing_id(self, session: Session, unique_hash: str,
                         idempotency_key: Optional[str] = None) -> Optional[str]:
        """Id of a reward already holding this hash or idempotency key"""
        try:
            condition = DBReward.unique_hash == unique_hash
            if idempotency_key:
                condition = or_(condition, DBReward.idempotency_key == idempotency_key)

            row = session.query(DBReward.id).filter(condition).order_by(DBReward.created_at).first()
            return row[0] if row else None

        except Exception as e:
            log_with_context(self.logger, ERROR, "Error looking up existing reward",
                             unique_hash=unique_hash, idempotency_key=idempotency_key, error=str(e))
            raise

    def list_for_user(self, session: Session, user_id: str,
                      start: Optional[datetime] = None,
                      end: Optional[datetime] = None) -> List[DBReward]:
        """Rewards for a user with rewarded_at in [start, end], oldest first"""
        query = session.query(DBReward).filter(DBReward.user_id == user_id)
        if start is not None:
            query = query.filter(DBReward.rewarded_at >= start)
        if end is not None:
            query = query.filter(DBReward.rewarded_at <= end)
        return query.order_by(DBReward.rewarded_at, DBReward.created_at).all()

    def list_symbols(self, session: Session) -> List[str]:
        rows = session.query(distinct(DBReward.stock_symbol)).all()
        return sorted(row[0] for row in rows)
