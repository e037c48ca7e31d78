# stocky/cli/context.py

"""
CLI Context

Lazily builds the configuration, the database manager and the full service
graph so that schema commands never touch Redis or the publisher.
"""

from typing import Mapping, Optional

import msgspec

from .. import create_stocky
from ..core.app import StockyApp
from ..core.config import StockyConfig
from ..core.logging import StockyLogger, log_with_context, INFO
from ..database.connection import DatabaseManager
from ..database.migration_manager import MigrationManager


class CLIContext:
    def __init__(self, env_vars: Optional[Mapping[str, str]] = None):
        self.logger = StockyLogger.get_logger('cli.context')
        self.env_vars = env_vars
        self._config: Optional[StockyConfig] = None
        self._db_manager: Optional[DatabaseManager] = None
        self._app: Optional[StockyApp] = None

    @property
    def config(self) -> StockyConfig:
        if self._config is None:
            self._config = StockyConfig.from_env(self.env_vars)
        return self._config

    @property
    def db_manager(self) -> DatabaseManager:
        if self._app is not None:
            return self._app.db_manager
        if self._db_manager is None:
            self._db_manager = DatabaseManager(self.config.database)
            self._db_manager.initialize()
        return self._db_manager

    @property
    def app(self) -> StockyApp:
        if self._app is None:
            log_with_context(self.logger, INFO, "Creating stocky app for CLI")
            if self._db_manager is not None:
                self._db_manager.shutdown()
                self._db_manager = None
            self._app = create_stocky(self.env_vars, config=self.config)
        return self._app

    def get_migration_manager(self) -> MigrationManager:
        return MigrationManager(self.db_manager)

    def shutdown(self) -> None:
        if self._app is not None:
            self._app.shutdown()
            self._app = None
        if self._db_manager is not None:
            self._db_manager.shutdown()
            self._db_manager = None


def to_json(obj) -> str:
    """Pretty JSON for msgspec structs, Decimals and datetimes"""
    return msgspec.json.format(msgspec.json.encode(obj), indent=2).decode()
