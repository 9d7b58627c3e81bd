"""Base repository: organization-scoped lookups and generic create/delete."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.exceptions import ResourceNotFoundException
from app.infrastructure.persistence.database import Base


class BaseRepository[ModelType: Base]:
    """Base repository for models carrying id and organization_id.

    Lookups always filter by organization: a row owned by another
    organization is indistinguishable from a missing one.
    """

    resource_name = "resource"

    def __init__(self, db: AsyncSession, model: type[ModelType]) -> None:
        self.db = db
        self.model = model

    async def get_entity(self, entity_id: str, organization_id: str) -> ModelType | None:
        """Return the ORM row by primary key within the organization, or None."""
        model: Any = self.model
        result = await self.db.execute(
            select(self.model).where(
                model.id == entity_id,
                model.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_entity_or_raise(self, entity_id: str, organization_id: str) -> ModelType:
        """Return the ORM row or raise ResourceNotFoundException."""
        obj = await self.get_entity(entity_id, organization_id)
        if obj is None:
            raise ResourceNotFoundException(self.resource_name, entity_id)
        return obj

    async def create(self, obj: ModelType) -> ModelType:
        """Persist a new record (flush and refresh so server defaults are loaded)."""
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def delete(self, obj: ModelType) -> None:
        await self.db.delete(obj)
        await self.db.flush()
