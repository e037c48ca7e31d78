# stocky/clients/publisher.py

from abc import ABC, abstractmethod
from typing import Dict

import msgspec

from ..core.logging import StockyLogger, log_with_context, INFO
from ..types import RewardCreatedEvent


REWARD_EVENTS_TOPIC = "reward-events"


class EventPublisher(ABC):
    """
    Delivers domain events downstream.

    Implementations must be bounded in time and must not retry. Any failure
    is raised as PublishError.
    """

    topic: str = REWARD_EVENTS_TOPIC

    @abstractmethod
    def publish(self, topic: str, key: str, payload: bytes, headers: Dict[str, str]) -> None:
        pass

    def publish_reward_created(self, event: RewardCreatedEvent) -> None:
        # Keyed by user so a consumer sees one user's rewards in order
        self.publish(
            topic=self.topic,
            key=event.user_id,
            payload=msgspec.json.encode(event),
            headers={"correlation_id": event.correlation_id},
        )

    def close(self) -> None:
        pass


class LoggingEventPublisher(EventPublisher):
    """Fallback used when no broker is configured: the event is only logged"""

    def __init__(self, topic: str = REWARD_EVENTS_TOPIC):
        self.topic = topic
        self.logger = StockyLogger.get_logger('clients.publisher')

    def publish(self, topic: str, key: str, payload: bytes, headers: Dict[str, str]) -> None:
        log_with_context(self.logger, INFO, "Event not delivered, no broker configured",
                         topic=topic, key=key, payload=payload.decode("utf-8"),
                         correlation_id=headers.get("correlation_id", ""))
