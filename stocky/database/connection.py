# stocky/database/connection.py

from typing import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, make_url, Engine, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool

from ..core.logging import StockyLogger, log_with_context, INFO, DEBUG, ERROR
from ..types import DatabaseConfig
from .base import StockyBase


class DatabaseManager:
    def __init__(self, config: DatabaseConfig):
        if not config:
            raise ValueError("DatabaseConfig is required")

        self.config = config
        self.logger = StockyLogger.get_logger(f'database.{self.__class__.__name__.lower()}')
        self._engine = None
        self._session_factory = None
        self._repositories = {}

        url = make_url(config.url)
        log_with_context(self.logger, INFO, "DatabaseManager initialized",
                         dialect=url.get_backend_name(),
                         db_host=url.host or "local",
                         db_name=url.database)

    @property
    def is_sqlite(self) -> bool:
        return self.config.url.startswith('sqlite')

    def initialize(self) -> None:
        if self._engine is not None:
            self.logger.warning("Database already initialized")
            return

        try:
            self.logger.info("Initializing database engine")

            if self.is_sqlite:
                # One shared connection so in-memory databases survive across sessions
                self._engine = create_engine(
                    self.config.url,
                    poolclass=StaticPool,
                    connect_args={"check_same_thread": False},
                )
            else:
                self._engine = create_engine(
                    self.config.url,
                    poolclass=QueuePool,
                    pool_size=self.config.pool_size,
                    max_overflow=self.config.max_overflow,
                    pool_timeout=30,
                    pool_recycle=3600,
                    pool_pre_ping=True,
                    connect_args={"options": f"-c statement_timeout={self.config.statement_timeout_ms}"},
                )

            self._session_factory = sessionmaker(
                bind=self._engine,
                expire_on_commit=False,
            )

            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))

            log_with_context(self.logger, INFO, "Database initialized successfully",
                             pool_size=self.config.pool_size,
                             max_overflow=self.config.max_overflow)

        except Exception as e:
            log_with_context(self.logger, ERROR, "Failed to initialize database",
                             error=str(e),
                             exception_type=type(e).__name__)
            raise

    def shutdown(self) -> None:
        self.logger.info("Shutting down database connections")

        if self._engine:
            self._engine.dispose()
            self._engine = None

        self._session_factory = None
        self._repositories.clear()

        self.logger.info("Database shutdown completed")

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        if self._session_factory is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self._session_factory

    def create_tables(self) -> None:
        """Create every table directly from metadata (tests and local development)"""
        from . import tables  # noqa: F401  registers the models

        StockyBase.metadata.create_all(self.engine)
        self.logger.info("Database tables created")

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        session = self.session_factory()
        try:
            log_with_context(self.logger, DEBUG, "Database session created")
            yield session
        except Exception as e:
            log_with_context(self.logger, DEBUG, "Database session error, rolling back",
                             error=str(e),
                             exception_type=type(e).__name__)
            session.rollback()
            raise
        finally:
            session.close()
            log_with_context(self.logger, DEBUG, "Database session closed")

    @contextmanager
    def get_transaction(self) -> Generator[Session, None, None]:
        with self.get_session() as session:
            try:
                yield session
                session.commit()
                log_with_context(self.logger, DEBUG, "Database transaction committed")
            except Exception as e:
                session.rollback()
                log_with_context(self.logger, INFO, "Database transaction rolled back",
                                 error=str(e),
                                 exception_type=type(e).__name__)
                raise

    def health_check(self) -> bool:
        try:
            with self.get_session() as session:
                session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            log_with_context(self.logger, ERROR, "Database health check failed",
                             error=str(e),
                             exception_type=type(e).__name__)
            return False

    def _get_or_create_repository(self, repo_class, repo_name):
        if repo_name not in self._repositories:
            self._repositories[repo_name] = repo_class(self)
        return self._repositories[repo_name]

    # === Repositories ===

    def get_reward_repo(self):
        from .repositories.reward_repository import RewardRepository
        return self._get_or_create_repository(RewardRepository, 'reward')

    def get_ledger_repo(self):
        from .repositories.ledger_repository import LedgerRepository
        return self._get_or_create_repository(LedgerRepository, 'ledger')

    def get_stock_price_repo(self):
        from .repositories.stock_price_repository import StockPriceRepository
        return self._get_or_create_repository(StockPriceRepository, 'stock_price')
