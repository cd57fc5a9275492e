from typing import Any, Generic, Optional, Sequence, Type, TypeVar

from sqlalchemy import ColumnExpressionArgument, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from clinisched.db.base import Base

RecordT = TypeVar("RecordT", bound=Base)


class BaseService(Generic[RecordT]):
    """
    Queries shared by the record services.

    Services never commit. The session owner (``get_or_create_session``)
    decides when the unit of work ends.

    Attributes:
        model: Record class the service works with.
    """

    model: Type[RecordT]

    def __init__(self, session: AsyncSession) -> None:
        if not hasattr(self, "model"):
            raise NotImplementedError(f"{type(self).__name__} must define a model")
        self.session = session

    async def add_model(self, record: RecordT) -> RecordT:
        """Add a record and flush it so constraint errors surface here."""
        self.session.add(record)
        await self.session.flush()
        return record

    async def find_one_or_none(self, **filter_by: Any) -> Optional[RecordT]:
        """Record matching the keyword filters, or None."""
        result = await self.session.execute(
            select(self.model).filter_by(**filter_by),
        )
        return result.scalar_one_or_none()

    async def find_all_where(
        self,
        *whereclauses: ColumnExpressionArgument[bool],
        order_by: Optional[list[ColumnExpressionArgument[Any]]] = None,
        limit: Optional[int] = None,
    ) -> Sequence[RecordT]:
        """
        Records matching every where clause.

        Args:
            *whereclauses: Filter expressions, combined with AND.
            order_by: Sort columns.
            limit: Maximum number of records.
        """
        query = select(self.model).where(*whereclauses)
        if order_by:
            query = query.order_by(*order_by)
        if limit:
            query = query.limit(limit)

        result = await self.session.execute(query)
        return result.scalars().all()

    async def update_where(
        self,
        *whereclauses: ColumnExpressionArgument[bool],
        **values: Any,
    ) -> int:
        """
        Bulk update without loading the records.

        Returns:
            Number of rows the database reports as updated.
        """
        statement = (
            update(self.model)
            .where(*whereclauses)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(statement)
        return result.rowcount
