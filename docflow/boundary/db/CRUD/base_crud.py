"""
Primary-key CRUD shared by the job store.

Methods flush and never commit; the owning session decides the transaction
boundary. Updates go through a single UPDATE ... RETURNING so the returned
row reflects what was written.

Dependencies: sqlalchemy
System role: Row access helpers for model-specific CRUD classes
"""

from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from docflow.boundary.db.base import Base, utcnow

ModelT = TypeVar("ModelT", bound=Base)


class BaseCRUD(Generic[ModelT]):
    """Insert, fetch and update rows of one model by UUID primary key."""

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    async def create(self, session: AsyncSession, **values) -> ModelT:
        """Insert a row and return it with server defaults loaded."""
        row = self.model(**values)
        session.add(row)
        await session.flush()
        await session.refresh(row)
        return row

    async def get_by_id(self, session: AsyncSession, id: UUID) -> ModelT | None:
        result = await session.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def update_by_id(self, session: AsyncSession, id: UUID, **values) -> ModelT | None:
        """
        Write ``values`` to one row.

        ``updated_at`` is stamped unless the caller passes it. The identity
        map copy is overwritten with the returned row.

        Returns:
            The updated row, or None when no row has this id
        """
        if hasattr(self.model, "updated_at"):
            values.setdefault("updated_at", utcnow())
        stmt = (
            update(self.model)
            .where(self.model.id == id)
            .values(**values)
            .returning(self.model)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()
