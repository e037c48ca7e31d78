# stocky/database/base_repository.py

from typing import TypeVar, Generic, Type, List, Dict, Any
from sqlalchemy.orm import Session

from ..core.logging import StockyLogger


T = TypeVar('T')


class BaseRepository(Generic[T]):
    def __init__(self, db_manager, model_class: Type[T]):
        self.db_manager = db_manager
        self.model_class = model_class
        self.logger = StockyLogger.get_logger(f'database.repository.{model_class.__tablename__}')

    def bulk_create(self, session: Session, items: List[Dict[str, Any]]) -> int:
        if not items:
            return 0

        try:
            session.add_all([self.model_class(**item) for item in items])
            session.flush()

            count = len(items)
            self.logger.debug(f"Bulk created {count} {self.model_class.__name__} records")
            return count

        except Exception as e:
            self.logger.error(f"Error bulk creating {self.model_class.__name__}: {e}")
            raise

