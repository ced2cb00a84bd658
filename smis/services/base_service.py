# smis/services/base_service.py
"""Base service with common CRUD operations."""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Type, Any, Dict, Optional, TypeVar, Generic

# Define generic type
T = TypeVar('T')

class BaseService(Generic[T]):
    def __init__(self, model: Type[T], db: AsyncSession):
        self.model = model
        self.db = db

    def _active(self, stmt, include_deleted: bool = False):
        if hasattr(self.model, 'is_deleted') and not include_deleted:
            stmt = stmt.where(self.model.is_deleted == False)
        return stmt

    async def get(self, id: Any, include_deleted: bool = False) -> Optional[T]:
        stmt = self._active(select(self.model).where(self.model.id == id), include_deleted)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, obj_in: Dict) -> T:
        obj = self.model(**obj_in)
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def soft_delete(self, id: Any) -> bool:
        obj = await self.get(id)
        if not obj:
            return False
        obj.is_deleted = True
        await self.db.commit()
        return True

    async def get_active_count(self, **filters) -> int:
        """Get count of non-deleted records"""
        stmt = self._active(select(func.count()).select_from(self.model))
        for key, value in filters.items():
            if hasattr(self.model, key) and value is not None:
                stmt = stmt.where(getattr(self.model, key) == value)
        result = await self.db.execute(stmt)
        return result.scalar()
