from enum import Enum
from typing import Any, Dict

from sqlalchemy.orm import declarative_base

from mhpbilling import db

Base = declarative_base()


def create_schema() -> None:
    """Create any missing tables for the models registered on Base."""
    db.init()
    Base.metadata.create_all(db.engine)


class ModelMixin:
    def attributes(self) -> Dict[str, Any]:
        """Column values keyed by column name, without the surrogate key."""
        attr = {}
        for col in self.__mapper__.columns:
            if col.name in ["oid", "id"]:
                continue

            val = getattr(self, col.name)

            # Manually extract value if it is a Python enum
            if issubclass(val.__class__, Enum):
                val = val.value

            attr[col.name] = val

        return attr
