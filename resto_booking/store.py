"""Generic entity store over an async SQLAlchemy session

Each write commits on its own. Entities mapped with a ``version_id_col``
(reservations) get compare-and-swap updates: the caller's expected version is
checked before writing, and SQLAlchemy re-checks it in the UPDATE statement.
"""

from typing import Any, Dict, List, Optional, Type, TypeVar
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from resto_booking.errors import NotFoundError, StaleWriteError

logger = structlog.get_logger()

ModelT = TypeVar("ModelT")


class EntityStore:
    """list / filter / get / create / update / delete per entity type"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self, model: Type[ModelT], **equals: Any) -> List[ModelT]:
        query = select(model)
        for field, value in equals.items():
            query = query.where(getattr(model, field) == value)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def filter(self, model: Type[ModelT], *criteria, order_by=None) -> List[ModelT]:
        query = select(model).where(*criteria)
        if order_by is not None:
            query = query.order_by(order_by)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get(self, model: Type[ModelT], entity_id: UUID, restaurant_id: Optional[UUID] = None) -> ModelT:
        """Fetch by id, optionally scoped to a restaurant; raise NotFoundError otherwise"""
        entity = await self.db.get(model, entity_id)
        if entity is None or (
            restaurant_id is not None and getattr(entity, "restaurant_id", None) != restaurant_id
        ):
            raise NotFoundError(f"{model.__name__} {entity_id} not found")
        return entity

    async def create(self, model: Type[ModelT], **attrs: Any) -> ModelT:
        entity = model(**attrs)
        self.db.add(entity)
        await self.db.commit()
        await self.db.refresh(entity)
        return entity

    async def update(
        self,
        entity: ModelT,
        patch: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> ModelT:
        """Apply a patch and commit, failing with StaleWriteError on a version mismatch"""
        current_version = getattr(entity, "version", None)
        if expected_version is not None and current_version != expected_version:
            raise StaleWriteError(
                f"{type(entity).__name__} was modified since it was read",
                {"expected_version": expected_version, "current_version": current_version},
            )

        for field, value in patch.items():
            setattr(entity, field, value)

        try:
            await self.db.commit()
        except StaleDataError as exc:
            await self.db.rollback()
            logger.warning("Concurrent write detected", entity=type(entity).__name__, entity_id=str(entity.id))
            raise StaleWriteError(f"{type(entity).__name__} was modified concurrently") from exc

        await self.db.refresh(entity)
        return entity

    async def delete(self, model: Type[ModelT], entity_id: UUID, restaurant_id: Optional[UUID] = None) -> None:
        entity = await self.get(model, entity_id, restaurant_id)
        await self.db.delete(entity)
        await self.db.commit()
