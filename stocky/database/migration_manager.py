# stocky/database/migration_manager.py

"""
Schema migrations for the ledger database.

Alembic is configured programmatically; the migration scripts ship inside
the package so no alembic.ini is needed. The manager hands alembic the
DatabaseManager's engine connection so credentials resolve exactly once.
"""

from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory

from .connection import DatabaseManager
from ..core.logging import StockyLogger, log_with_context, INFO, ERROR


class MigrationManager:
    def __init__(self, db_manager: DatabaseManager):
        self.logger = StockyLogger.get_logger('database.migration_manager')
        self.db_manager = db_manager
        self.migrations_dir = Path(__file__).parent / "migrations"

    def _get_alembic_config(self, connection=None) -> Config:
        alembic_cfg = Config()
        alembic_cfg.set_main_option("script_location", str(self.migrations_dir))
        if connection is not None:
            alembic_cfg.attributes["connection"] = connection
        return alembic_cfg

    def upgrade(self, revision: str = 'head') -> None:
        """Apply migrations up to ``revision``"""
        log_with_context(self.logger, INFO, "Upgrading database", revision=revision)

        try:
            with self.db_manager.engine.begin() as connection:
                command.upgrade(self._get_alembic_config(connection), revision)
            log_with_context(self.logger, INFO, "Database upgraded successfully",
                             revision=self.current())
        except Exception as e:
            log_with_context(self.logger, ERROR, "Failed to upgrade database",
                             error=str(e), exception_type=type(e).__name__)
            raise

    def current(self) -> Optional[str]:
        with self.db_manager.engine.connect() as connection:
            context = MigrationContext.configure(connection)
            return context.get_current_revision()

    def head(self) -> Optional[str]:
        script_dir = ScriptDirectory.from_config(self._get_alembic_config())
        return script_dir.get_current_head()

    def is_up_to_date(self) -> bool:
        return self.current() == self.head()
