# stocky/services/ledger_writer.py

import threading
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..clients.publisher import EventPublisher
from ..core.errors import ConflictError, OperationCancelled, PublishError, StorageError
from ..core.logging import StockyLogger, log_with_context, INFO, WARNING, ERROR
from ..database.connection import DatabaseManager
from ..types import NewReward, RewardCreatedEvent
from ..utils.convert_time import format_rfc3339
from .price_cache import PriceCache


class LedgerWriter:
    """
    Records a reward and its three ledger rows as one unit of work.

    Inside a single transaction:
      1. insert the reward row (unique hash / idempotency key enforced by the table)
      2. value it at the current cached price
      3. write the principal entry
      4. write the brokerage fee entry
      5. write the STT fee entry

    Any failure rolls everything back. Only after the commit is the
    RewardCreated event published, and a publish failure is logged without
    touching the committed rows.
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        price_cache: PriceCache,
        publisher: EventPublisher,
        brokerage_rate: Decimal = Decimal("0.001"),
        stt_rate: Decimal = Decimal("0.00025"),
    ):
        self.db_manager = db_manager
        self.price_cache = price_cache
        self.publisher = publisher
        self.brokerage_rate = Decimal(brokerage_rate)
        self.stt_rate = Decimal(stt_rate)

        self.reward_repo = db_manager.get_reward_repo()
        self.ledger_repo = db_manager.get_ledger_repo()

        self.logger = StockyLogger.get_logger('services.ledger_writer')

    def create_reward(self, reward: NewReward, cancel_event: Optional[threading.Event] = None) -> str:
        self._check_cancelled(cancel_event, reward)

        try:
            with self.db_manager.get_transaction() as session:
                self.reward_repo.insert(session, reward)

                quote = self.price_cache.get_price(reward.stock_symbol)
                notional = reward.shares * quote.price

                self.ledger_repo.record_reward_entries(
                    session, reward, notional, self.brokerage_rate, self.stt_rate
                )

                # Last point where cancellation still leaves nothing behind
                self._check_cancelled(cancel_event, reward)

        except IntegrityError as e:
            existing_id = self._find_existing_id(reward)
            log_with_context(self.logger, INFO, "Duplicate reward rejected by constraint",
                             user_id=reward.user_id, unique_hash=reward.unique_hash,
                             idempotency_key=reward.idempotency_key, reward_id=existing_id)
            raise ConflictError(existing_id) from e

        except SQLAlchemyError as e:
            log_with_context(self.logger, ERROR, "Ledger write failed",
                             user_id=reward.user_id, reward_id=reward.id, error=str(e),
                             exception_type=type(e).__name__)
            raise StorageError(f"ledger write failed: {e}") from e

        log_with_context(self.logger, INFO, "Reward committed",
                         reward_id=reward.id, user_id=reward.user_id, symbol=reward.stock_symbol,
                         shares=str(reward.shares), price=str(quote.price),
                         correlation_id=reward.idempotency_key or "")

        self._publish(reward)
        return reward.id

    def _publish(self, reward: NewReward) -> None:
        event = RewardCreatedEvent(
            reward_id=reward.id,
            user_id=reward.user_id,
            stock_symbol=reward.stock_symbol,
            shares=str(reward.shares),
            rewarded_at=format_rfc3339(reward.rewarded_at),
            correlation_id=reward.idempotency_key or "",
        )
        try:
            self.publisher.publish_reward_created(event)
        except PublishError as e:
            log_with_context(self.logger, WARNING, "RewardCreated event not delivered",
                             reward_id=reward.id, correlation_id=event.correlation_id, error=str(e))
        except Exception as e:
            # Already committed; nothing raised here may reach the caller
            log_with_context(self.logger, ERROR, "RewardCreated publish raised unexpectedly",
                             reward_id=reward.id, correlation_id=event.correlation_id, error=str(e),
                             exception_type=type(e).__name__)

    def _find_existing_id(self, reward: NewReward) -> Optional[str]:
        try:
            with self.db_manager.get_session() as session:
                return self.reward_repo.find_existing_id(session, reward.unique_hash, reward.idempotency_key)
        except SQLAlchemyError as e:
            raise StorageError(f"duplicate lookup failed: {e}") from e

    def _check_cancelled(self, cancel_event: Optional[threading.Event], reward: NewReward) -> None:
        if cancel_event is not None and cancel_event.is_set():
            log_with_context(self.logger, INFO, "Reward creation cancelled",
                             reward_id=reward.id, user_id=reward.user_id)
            raise OperationCancelled(f"reward {reward.id} cancelled before commit")
