# stocky/clients/pubsub_subscriber.py

import threading
from typing import Callable, Optional

import msgspec
from google.cloud import pubsub_v1

from ..core.logging import LoggingMixin
from ..types import PublisherConfig, RewardCreatedEvent


EventHandler = Callable[[RewardCreatedEvent], None]


class RewardEventListener(LoggingMixin):
    """
    Streaming-pull listener on the reward-events subscription.

    Each message is decoded as a RewardCreatedEvent, logged, handed to the
    optional handler and acked. Payloads that do not decode are logged and
    acked as well; redelivering them would never succeed. The listener only
    observes, so there is no dedup on redelivered events.
    """

    def __init__(
        self,
        config: PublisherConfig,
        client: Optional[pubsub_v1.SubscriberClient] = None,
        stop_event: Optional[threading.Event] = None,
        poll_seconds: float = 1.0,
        max_messages: int = 100,
    ):
        if not config.project_id:
            raise ValueError("PublisherConfig.project_id is required for Pub/Sub")

        self.config = config
        self.client = client or pubsub_v1.SubscriberClient()
        self.stop_event = stop_event or threading.Event()
        self.poll_seconds = poll_seconds
        self.max_messages = max_messages
        self.subscription_path = self.client.subscription_path(config.project_id, config.subscription)

    def handle_message(self, message, on_event: Optional[EventHandler] = None) -> None:
        try:
            event = msgspec.json.decode(message.data, type=RewardCreatedEvent)
        except (msgspec.DecodeError, msgspec.ValidationError) as e:
            self.log_warning("Dropping undecodable reward event",
                             message_id=message.message_id, error=str(e))
            message.ack()
            return

        self.log_info("Received reward event",
                      message_id=message.message_id, reward_id=event.reward_id,
                      user_id=event.user_id, correlation_id=event.correlation_id)

        if on_event is not None:
            try:
                on_event(event)
            except Exception as e:
                # Unacked, so Pub/Sub redelivers it
                self.log_error("Reward event handler failed",
                               message_id=message.message_id, reward_id=event.reward_id,
                               error=str(e), exception_type=type(e).__name__)
                message.nack()
                return

        message.ack()

    def run(self, on_event: Optional[EventHandler] = None) -> None:
        """Listen until the stop event is set or the stream fails"""
        future = self.client.subscribe(
            self.subscription_path,
            callback=lambda message: self.handle_message(message, on_event),
            flow_control=pubsub_v1.types.FlowControl(max_messages=self.max_messages),
        )
        self.log_info("Listening for reward events", subscription=self.subscription_path)

        try:
            while not self.stop_event.is_set() and not future.done():
                self.stop_event.wait(self.poll_seconds)
        finally:
            future.cancel()
            # Blocks until the stream has shut down; re-raises a stream failure
            future.result()
            self.client.close()
            self.log_info("Reward event listener stopped", subscription=self.subscription_path)
