# stocky/core/config.py

from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional
import os
import logging

from msgspec import Struct

from ..types import (
    DatabaseConfig,
    RedisConfig,
    PricingConfig,
    LedgerConfig,
    PublisherConfig,
)
from .secrets_service import DatabaseSecrets, RedisSecrets, SecretsService
from .logging import StockyLogger, log_with_context


DEFAULT_TRACKED_SYMBOLS = ["RELIANCE", "TCS", "INFY", "HDFCBANK"]


class StockyConfig(Struct):
    database: DatabaseConfig
    redis: RedisConfig
    pricing: PricingConfig
    ledger: LedgerConfig
    publisher: PublisherConfig
    gcp_project_id: Optional[str] = None

    @classmethod
    def from_env(cls, env_vars: Optional[Mapping[str, str]] = None,
                 secrets_service: Optional[SecretsService] = None) -> 'StockyConfig':
        logger = StockyLogger.get_logger('core.config')

        if env_vars is None:
            from dotenv import load_dotenv
            load_dotenv()
        env = env_vars if env_vars is not None else os.environ

        project_id = env.get("STOCKY_GCP_PROJECT_ID") or None
        if secrets_service is None and project_id and not env.get("STOCKY_DB_URL"):
            secrets_service = SecretsService(project_id)

        config = cls(
            database=cls._create_database_config(env, secrets_service),
            redis=cls._create_redis_config(env, secrets_service),
            pricing=cls._create_pricing_config(env),
            ledger=cls._create_ledger_config(env),
            publisher=cls._create_publisher_config(env, project_id),
            gcp_project_id=project_id,
        )

        log_with_context(logger, logging.INFO, "StockyConfig created successfully",
                         tracked_symbols=",".join(config.pricing.tracked_symbols),
                         publisher_project=config.publisher.project_id or "none")

        return config

    @staticmethod
    def _create_database_config(env: Mapping[str, str],
                                secrets_service: Optional[SecretsService]) -> DatabaseConfig:
        logger = StockyLogger.get_logger('core.config.database')

        pool_size = _int_env(env, "STOCKY_DB_POOL_SIZE", 5)
        max_overflow = _int_env(env, "STOCKY_DB_MAX_OVERFLOW", 10)
        statement_timeout_ms = _int_env(env, "STOCKY_DB_STATEMENT_TIMEOUT_MS", 5000)

        db_url = env.get("STOCKY_DB_URL")
        if not db_url:
            secrets = secrets_service.fetch(DatabaseSecrets) if secrets_service else DatabaseSecrets()

            db_user = secrets.user or env.get("STOCKY_DB_USER")
            db_password = secrets.password or env.get("STOCKY_DB_PASSWORD")
            db_host = env.get("STOCKY_DB_HOST") or secrets.host or "127.0.0.1"
            db_port = env.get("STOCKY_DB_PORT") or "5432"
            db_name = env.get("STOCKY_DB_NAME", "stocky")

            if not db_user or not db_password:
                raise ValueError("Database credentials not found in secrets or environment variables")

            db_url = f"postgresql+psycopg://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"

            log_with_context(logger, logging.DEBUG, "Database configuration created",
                             db_host=db_host, db_port=db_port, db_name=db_name)

        return DatabaseConfig(
            url=db_url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            statement_timeout_ms=statement_timeout_ms,
        )

    @staticmethod
    def _create_redis_config(env: Mapping[str, str],
                             secrets_service: Optional[SecretsService]) -> RedisConfig:
        url = env.get("STOCKY_REDIS_URL")
        if not url and secrets_service:
            url = secrets_service.fetch(RedisSecrets).url
        return RedisConfig(
            url=url or "redis://127.0.0.1:6379/0",
            socket_timeout=_float_env(env, "STOCKY_REDIS_TIMEOUT", 2.0),
        )

    @staticmethod
    def _create_pricing_config(env: Mapping[str, str]) -> PricingConfig:
        raw_symbols = env.get("STOCKY_TRACKED_SYMBOLS")
        if raw_symbols:
            symbols = [s.strip() for s in raw_symbols.split(",") if s.strip()]
        else:
            symbols = list(DEFAULT_TRACKED_SYMBOLS)

        min_price = _decimal_env(env, "STOCKY_PRICE_MIN", "100")
        max_price = _decimal_env(env, "STOCKY_PRICE_MAX", "1100")
        if Decimal(min_price) <= 0 or Decimal(max_price) < Decimal(min_price):
            raise ValueError("STOCKY_PRICE_MIN must be positive and not above STOCKY_PRICE_MAX")

        return PricingConfig(
            ttl_seconds=_int_env(env, "STOCKY_PRICE_TTL_SECONDS", 7200),
            refresh_interval_seconds=_int_env(env, "STOCKY_PRICE_REFRESH_SECONDS", 3600),
            tracked_symbols=symbols,
            min_price=min_price,
            max_price=max_price,
        )

    @staticmethod
    def _create_ledger_config(env: Mapping[str, str]) -> LedgerConfig:
        return LedgerConfig(
            brokerage_rate=_decimal_env(env, "STOCKY_BROKERAGE_RATE", "0.001"),
            stt_rate=_decimal_env(env, "STOCKY_STT_RATE", "0.00025"),
            idempotency_ttl_seconds=_int_env(env, "STOCKY_IDEMPOTENCY_TTL_SECONDS", 86400),
            idempotency_pending_ttl_seconds=_int_env(env, "STOCKY_IDEMPOTENCY_PENDING_TTL_SECONDS", 300),
        )

    @staticmethod
    def _create_publisher_config(env: Mapping[str, str], project_id: Optional[str]) -> PublisherConfig:
        return PublisherConfig(
            project_id=env.get("STOCKY_PUBSUB_PROJECT_ID") or project_id,
            topic=env.get("STOCKY_PUBSUB_TOPIC", "reward-events"),
            timeout_seconds=_float_env(env, "STOCKY_PUBLISH_TIMEOUT", 5.0),
            subscription=env.get("STOCKY_PUBSUB_SUBSCRIPTION", "reward-events-tail"),
        )


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _float_env(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _decimal_env(env: Mapping[str, str], name: str, default: str) -> str:
    raw = env.get(name) or default
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise ValueError(f"{name} must be a decimal, got {raw!r}")
    if not value.is_finite() or value < 0:
        raise ValueError(f"{name} must be a non-negative finite decimal, got {raw!r}")
    return raw
