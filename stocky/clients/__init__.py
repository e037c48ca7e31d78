# stocky/clients/__init__.py

from .interfaces import CacheStore, PriceSource, PriceSourceError
from .publisher import EventPublisher, LoggingEventPublisher, REWARD_EVENTS_TOPIC
from .price_source import SimulatedPriceSource
