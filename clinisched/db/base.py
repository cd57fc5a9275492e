from typing import Any

from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.inspection import inspect
from sqlalchemy.orm import DeclarativeBase

from clinisched.db.meta import meta


class Base(AsyncAttrs, DeclarativeBase):
    """Base for all records."""

    __abstract__ = True
    metadata = meta

    def to_dict(self) -> dict[str, Any]:
        """Column values keyed by attribute name, ready for model_validate."""
        mapper = inspect(self.__class__)
        return {attr.key: getattr(self, attr.key) for attr in mapper.column_attrs}

    def __repr__(self) -> str:
        mapper = inspect(self.__class__)
        keys = ", ".join(
            f"{column.key}={getattr(self, column.key)!r}"
            for column in mapper.primary_key
        )
        return f"<{self.__class__.__name__} {keys}>"
