# stocky/clients/pubsub_publisher.py

from typing import Dict, Optional

from google.cloud import pubsub_v1

from .publisher import EventPublisher
from ..core.errors import PublishError
from ..core.logging import StockyLogger, log_with_context, INFO, DEBUG, WARNING
from ..types import PublisherConfig


class PubSubEventPublisher(EventPublisher):
    """
    Google Cloud Pub/Sub transport.

    The event key becomes the ordering key and headers become message
    attributes. Each publish waits at most ``timeout_seconds`` and is not
    retried.
    """

    def __init__(self, config: PublisherConfig, client: Optional[pubsub_v1.PublisherClient] = None):
        if not config.project_id:
            raise ValueError("PublisherConfig.project_id is required for Pub/Sub")

        self.config = config
        self.topic = config.topic
        self.timeout = config.timeout_seconds
        self.client = client or pubsub_v1.PublisherClient(
            publisher_options=pubsub_v1.types.PublisherOptions(enable_message_ordering=True)
        )
        self.logger = StockyLogger.get_logger('clients.pubsub_publisher')

        log_with_context(self.logger, INFO, "PubSubEventPublisher initialized",
                         project_id=config.project_id, topic=config.topic)

    def publish(self, topic: str, key: str, payload: bytes, headers: Dict[str, str]) -> None:
        topic_path = self.client.topic_path(self.config.project_id, topic)
        try:
            future = self.client.publish(
                topic_path,
                payload,
                ordering_key=key,
                retry=None,
                timeout=self.timeout,
                **headers,
            )
            message_id = future.result(timeout=self.timeout)

        except Exception as e:
            log_with_context(self.logger, WARNING, "Pub/Sub publish failed",
                             topic=topic, key=key, error=str(e),
                             exception_type=type(e).__name__)
            if key:
                self._resume(topic_path, key)
            raise PublishError(f"publish to {topic} failed: {e}") from e

        log_with_context(self.logger, DEBUG, "Event published",
                         topic=topic, key=key, message_id=message_id,
                         correlation_id=headers.get("correlation_id", ""))

    def _resume(self, topic_path: str, key: str) -> None:
        # A failed ordered publish pauses the key until resumed
        try:
            self.client.resume_publish(topic_path, key)
        except Exception as e:
            log_with_context(self.logger, WARNING, "Could not resume ordering key",
                             topic_path=topic_path, key=key, error=str(e))

    def close(self) -> None:
        self.client.stop()
