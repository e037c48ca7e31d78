# stocky/services/reward_service.py

import threading
import uuid
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Literal, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..core.errors import (
    ConflictError,
    IdempotencyInProgressError,
    StorageError,
    StockyError,
    ValidationError,
)
from ..core.logging import LoggingMixin
from ..database.connection import DatabaseManager
from ..types import (
    CreateRewardRequest,
    CreateRewardResult,
    HistoricalINR,
    IdempotentOutcome,
    NewReward,
    Portfolio,
    Reward,
    Stats,
)
from ..utils.convert_time import parse_rfc3339, parse_optional_date
from ..utils.reward_hash import create_reward_hash
from .idempotency_guard import IdempotencyGuard
from .ledger_writer import LedgerWriter
from .price_cache import utc_now
from .valuation_service import ValuationService


SHARES_SCALE = 6


class RewardService(LoggingMixin):
    """
    Entry point for reward admission and the read-side views.

    Admission order: idempotency key claim, content-hash pre-check, then the
    ledger writer. The storage constraints are what actually guarantee a
    single row; the pre-check only saves a doomed transaction.
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        guard: IdempotencyGuard,
        ledger_writer: LedgerWriter,
        valuation: ValuationService,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db_manager = db_manager
        self.guard = guard
        self.ledger_writer = ledger_writer
        self.valuation = valuation
        self.clock = clock
        self.reward_repo = db_manager.get_reward_repo()

    # =====================================================================
    # ADMISSION
    # =====================================================================

    def create_reward(
        self,
        user_id: str,
        request: CreateRewardRequest,
        idempotency_key: str = "",
        cancel_event: Optional[threading.Event] = None,
    ) -> CreateRewardResult:
        if idempotency_key:
            claim = self.guard.claim(idempotency_key)
            if not claim.claimed:
                return self._replay(idempotency_key, claim.prior_result)

        try:
            reward = self._build_reward(user_id, request, idempotency_key)

            existing_id = self._find_existing_id(reward.unique_hash, idempotency_key)
            if existing_id is not None:
                self.log_info("Duplicate reward rejected before write",
                              user_id=user_id, reward_id=existing_id, unique_hash=reward.unique_hash)
                raise ConflictError(existing_id)

            reward_id = self.ledger_writer.create_reward(reward, cancel_event=cancel_event)

        except ConflictError as e:
            self.guard.complete(idempotency_key, IdempotentOutcome(status="conflict", reward_id=e.reward_id))
            raise
        except StockyError:
            # Validation, storage or cancellation: let a retry with the same key run again
            self.guard.release(idempotency_key)
            raise
        except Exception as e:
            self.log_error("Reward admission failed unexpectedly",
                           user_id=user_id, idempotency_key=idempotency_key,
                           error=str(e), exception_type=type(e).__name__)
            self.guard.release(idempotency_key)
            raise

        self.guard.complete(idempotency_key, IdempotentOutcome(status="created", reward_id=reward_id))
        return CreateRewardResult(reward_id=reward_id)

    def _replay(self, idempotency_key: str, prior: Optional[IdempotentOutcome]) -> CreateRewardResult:
        if prior is None or prior.status == "pending":
            raise IdempotencyInProgressError(idempotency_key)
        if prior.status == "conflict":
            raise ConflictError(prior.reward_id)

        self.log_info("Replaying stored result for idempotency key",
                      idempotency_key=idempotency_key, reward_id=prior.reward_id)
        return CreateRewardResult(reward_id=prior.reward_id, replayed=True)

    def _build_reward(self, user_id: str, request: CreateRewardRequest, idempotency_key: str) -> NewReward:
        if not user_id or not user_id.strip():
            raise ValidationError("user_id", "is required")
        if not request.stock_symbol or not request.stock_symbol.strip():
            raise ValidationError("stock_symbol", "is required")

        try:
            shares = Decimal(request.shares)
        except (InvalidOperation, TypeError):
            raise ValidationError("shares", f"not a valid decimal: {request.shares!r}")
        if not shares.is_finite() or shares <= 0:
            raise ValidationError("shares", f"must be a positive number: {request.shares!r}")
        if shares.as_tuple().exponent < -SHARES_SCALE:
            raise ValidationError("shares", f"at most {SHARES_SCALE} decimal places: {request.shares!r}")

        try:
            rewarded_at = parse_rfc3339(request.rewarded_at)
        except (ValueError, TypeError):
            raise ValidationError("rewarded_at", f"not an RFC 3339 timestamp: {request.rewarded_at!r}")

        return NewReward(
            id=str(uuid.uuid4()),
            user_id=user_id,
            stock_symbol=request.stock_symbol,
            shares=shares,
            rewarded_at=rewarded_at,
            created_at=self.clock(),
            unique_hash=create_reward_hash(user_id, request.stock_symbol, request.shares, request.rewarded_at),
            idempotency_key=idempotency_key or None,
        )

    def _find_existing_id(self, unique_hash: str, idempotency_key: str) -> Optional[str]:
        try:
            with self.db_manager.get_session() as session:
                return self.reward_repo.find_existing_id(session, unique_hash, idempotency_key or None)
        except SQLAlchemyError as e:
            raise StorageError(f"duplicate lookup failed: {e}") from e

    # =====================================================================
    # READ SIDE
    # =====================================================================

    def list_rewards_for_date(self, user_id: str, day: Optional[str] = None) -> List[Reward]:
        try:
            parsed = parse_optional_date(day)
        except ValueError:
            raise ValidationError("date", f"not an ISO date: {day!r}")
        return self.valuation.list_rewards_for_date(user_id, parsed)

    def get_historical_inr(
        self,
        user_id: str,
        start: Optional[str] = None,
        end: Optional[str] = None,
        page: int = 1,
        size: int = 50,
    ) -> List[HistoricalINR]:
        return self.valuation.get_historical_inr(
            user_id,
            self._parse_bound("from", start),
            self._parse_bound("to", end),
            page,
            size,
        )

    def get_stats(self, user_id: str, scope: Literal["all", "today"] = "all") -> Stats:
        return self.valuation.get_stats(user_id, scope)

    def get_portfolio(self, user_id: str) -> Portfolio:
        return self.valuation.get_portfolio(user_id)

    @staticmethod
    def _parse_bound(field: str, value: Optional[str]) -> Optional[datetime]:
        if not value:
            return None
        try:
            return parse_rfc3339(value)
        except ValueError:
            raise ValidationError(field, f"not an RFC 3339 timestamp: {value!r}")
