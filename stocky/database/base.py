# stocky/database/base.py

from datetime import datetime, timezone

from sqlalchemy import Column
from sqlalchemy.orm import declarative_base, declarative_mixin
import msgspec

from .types import UTCDateTime


StockyBase = declarative_base()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@declarative_mixin
class CreatedAtMixin:
    created_at = Column(UTCDateTime(), nullable=False, default=utc_now)


class DBBaseModel(StockyBase):
    __abstract__ = True

    def to_struct(self, struct_type):
        """Convert the row into a msgspec Struct, keeping only the struct's fields"""
        fields = struct_type.__struct_fields__
        return struct_type(**{name: getattr(self, name) for name in fields})

    @classmethod
    def from_msgspec(cls, msgspec_obj: msgspec.Struct, **overrides):
        data = msgspec.structs.asdict(msgspec_obj)
        data.update(overrides)
        valid_columns = {col.key for col in cls.__table__.columns}
        filtered_data = {k: v for k, v in data.items() if k in valid_columns}

        return cls(**filtered_data)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
