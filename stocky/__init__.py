# stocky/__init__.py

import logging
import os
from decimal import Decimal
from pathlib import Path
from typing import Mapping, Optional

from .core.app import StockyApp
from .core.config import StockyConfig
from .core.logging import StockyLogger, log_with_context
from .clients.publisher import EventPublisher, LoggingEventPublisher
from .clients.price_source import SimulatedPriceSource
from .clients.redis_cache import RedisCacheStore
from .database.connection import DatabaseManager
from .types import PublisherConfig


def create_stocky(env_vars: Optional[Mapping[str, str]] = None,
                  config: Optional[StockyConfig] = None) -> StockyApp:
    env = env_vars if env_vars is not None else os.environ
    _configure_logging_early(env)

    logger = StockyLogger.get_logger('core.init')
    logger.info("Creating stocky instance")

    config = config or StockyConfig.from_env(env_vars)

    db_manager = DatabaseManager(config.database)
    db_manager.initialize()

    cache = RedisCacheStore(config.redis)
    publisher = _create_publisher(config.publisher)
    price_source = SimulatedPriceSource(
        min_price=Decimal(config.pricing.min_price),
        max_price=Decimal(config.pricing.max_price),
    )

    app = StockyApp(
        config=config,
        db_manager=db_manager,
        cache=cache,
        publisher=publisher,
        price_source=price_source,
    )

    log_with_context(logger, logging.INFO, "Stocky created successfully",
                     publisher=type(publisher).__name__,
                     tracked_symbols=",".join(config.pricing.tracked_symbols))

    return app


def _create_publisher(config: PublisherConfig) -> EventPublisher:
    if not config.project_id:
        return LoggingEventPublisher(topic=config.topic)

    from .clients.pubsub_publisher import PubSubEventPublisher
    return PubSubEventPublisher(config)


def _configure_logging_early(env: Mapping[str, str]):
    log_dir_env = env.get("STOCKY_LOG_DIR")
    log_dir = Path(log_dir_env) if log_dir_env else Path.cwd() / "logs"

    StockyLogger.configure(
        log_dir=log_dir,
        log_level=env.get("STOCKY_LOG_LEVEL", "INFO"),
        console_enabled=env.get("STOCKY_LOG_CONSOLE", "true").lower() == "true",
        file_enabled=env.get("STOCKY_LOG_FILE", "false").lower() == "true",
        structured_format=env.get("STOCKY_LOG_STRUCTURED", "false").lower() == "true",
    )
