"""
Declarative base and the columns every salon table shares.

Rows have two identities:
- ``id``: integer primary key, used only for joins and foreign keys
- ``uuid``: the stored id services hand out and accept (``StoredId``)

Catalog, client and visit rows also carry an ``owner_id`` (the signed-in
account); it is set on creation and never changed by ``update_from_dict``.
"""

import uuid as uuid_lib
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import declarative_base, validates

from salon_tracker.utils.datetime_utils import utc_now

Base = declarative_base()

# Columns update_from_dict never writes
PROTECTED_COLUMNS = frozenset({"id", "uuid", "owner_id", "created_at", "updated_at"})


def _new_uuid() -> str:
    return str(uuid_lib.uuid4())


def _plain(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


class BaseModel(Base):
    """
    Abstract base model with common fields and methods.

    Attributes:
        id: Integer primary key, internal only
        uuid: Stored identity (string form of a uuid4)
        created_at: When the row was written
        updated_at: When the row was last changed
    """

    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)
    uuid = Column(String(36), unique=True, nullable=False, default=_new_uuid, index=True)

    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    @validates("uuid")
    def _validate_uuid(self, _key: str, value: Any) -> str:
        """Store uuids as strings (SQLite has no uuid type)."""
        if value is None:
            return value
        return str(value)

    def to_dict(self) -> Dict[str, Any]:
        """
        Column values as plain JSON-friendly data.

        The stored ``uuid`` is returned under ``id``; integer keys (the primary
        key and ``*_id`` foreign keys) are left out. Dates become ISO strings,
        Decimals strings and enums their values.
        """
        result = {"id": self.uuid}
        for column in self.__table__.columns:
            if column.name in ("id", "uuid") or (
                column.name.endswith("_id") and isinstance(column.type, Integer)
            ):
                continue
            result[column.name] = _plain(getattr(self, column.name))
        return result

    def update_from_dict(self, data: Dict[str, Any]) -> None:
        """
        Set the columns named in ``data``; unknown keys are ignored.

        Identity, ownership and timestamp columns are never written; ``updated_at``
        is refreshed.
        """
        for column in self.__table__.columns:
            if column.name in data and column.name not in PROTECTED_COLUMNS:
                setattr(self, column.name, data[column.name])

        self.updated_at = utc_now()

    def __repr__(self) -> str:
        label = getattr(self, "name", None)
        if label is None:
            return f"{self.__class__.__name__}(uuid={self.uuid!r})"
        return f"{self.__class__.__name__}(uuid={self.uuid!r}, name={label!r})"
