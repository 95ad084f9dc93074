# siakad/services/base_service.py
"""Base service with common lookups."""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from typing import Type, Any, Optional, TypeVar, Generic

# Define generic type
T = TypeVar('T')

class BaseService(Generic[T]):
    def __init__(self, model: Type[T], db: AsyncSession):
        self.model = model
        self.db = db

    async def get(self, id: Any) -> Optional[T]:
        stmt = select(self.model).where(self.model.id == id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()


async def set_single_active(db: AsyncSession, model: Type[Any], obj_id: Any) -> None:
    """Make obj_id the only row of model with is_active set.

    Runs inside the caller's transaction so no reader ever sees two active rows.
    Every row of the table is locked first, so concurrent activations run one
    after the other.
    """
    await db.execute(select(model.id).order_by(model.id).with_for_update())
    await db.execute(update(model).where(model.is_active.is_(True)).values(is_active=False))
    await db.execute(update(model).where(model.id == obj_id).values(is_active=True))
