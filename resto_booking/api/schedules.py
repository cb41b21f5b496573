"""Weekly schedule and closure block API endpoints"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from resto_booking.context import RequestContext
from resto_booking.database import get_db
from resto_booking.errors import InvalidTableError, ValidationError
from resto_booking.models.schedule import Block, Schedule
from resto_booking.models.table import Table
from resto_booking.models.user import UserRole
from resto_booking.schemas.schedule import (
    BlockCreate,
    BlockResponse,
    ScheduleBulkUpdate,
    ScheduleResponse,
)
from resto_booking.services import audit
from resto_booking.store import EntityStore
from resto_booking.api.auth import restaurant_context

router = APIRouter()
blocks_router = APIRouter()


@router.get("", response_model=List[ScheduleResponse])
async def list_schedules(
    ctx: RequestContext = Depends(restaurant_context()),
    db: AsyncSession = Depends(get_db),
):
    """Weekly schedule, Monday lunch first"""
    store = EntityStore(db)
    schedules = await store.list(Schedule, restaurant_id=ctx.restaurant_id)
    return sorted(schedules, key=lambda s: (s.day_of_week, s.service_type.value))


@router.put("", response_model=List[ScheduleResponse])
async def update_schedules(
    schedule_data: ScheduleBulkUpdate,
    ctx: RequestContext = Depends(restaurant_context(UserRole.RESTAURANT_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Create or replace schedule entries keyed by weekday and service"""
    for entry in schedule_data.entries:
        if entry.is_open and not (entry.start_time and entry.end_time and entry.start_time < entry.end_time):
            raise ValidationError(
                "An open service needs a start time before its end time",
                {"day_of_week": entry.day_of_week, "service_type": entry.service_type.value},
            )

    store = EntityStore(db)
    existing = {
        (s.day_of_week, s.service_type): s
        for s in await store.list(Schedule, restaurant_id=ctx.restaurant_id)
    }
    for entry in schedule_data.entries:
        values = entry.model_dump()
        schedule = existing.get((entry.day_of_week, entry.service_type))
        if schedule is None:
            existing[(entry.day_of_week, entry.service_type)] = await store.create(
                Schedule, restaurant_id=ctx.restaurant_id, **values
            )
        else:
            await store.update(schedule, values)

    await audit.record(
        store, ctx, "update", ctx.restaurant_id,
        after={"entries": len(schedule_data.entries)}, resource_type="schedule",
    )
    return sorted(existing.values(), key=lambda s: (s.day_of_week, s.service_type.value))


@blocks_router.get("", response_model=List[BlockResponse])
async def list_blocks(
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    ctx: RequestContext = Depends(restaurant_context()),
    db: AsyncSession = Depends(get_db),
):
    """Closures, optionally within a date range"""
    criteria = [Block.restaurant_id == ctx.restaurant_id]
    if from_date:
        criteria.append(Block.date >= from_date)
    if to_date:
        criteria.append(Block.date <= to_date)
    return await EntityStore(db).filter(Block, *criteria, order_by=Block.date)


@blocks_router.post("", response_model=BlockResponse, status_code=status.HTTP_201_CREATED)
async def create_block(
    block_data: BlockCreate,
    ctx: RequestContext = Depends(restaurant_context(UserRole.RESTAURANT_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Close a day, a service, or take one table out of allocation"""
    store = EntityStore(db)
    if block_data.table_id is not None:
        table = await db.get(Table, block_data.table_id)
        if table is None or table.restaurant_id != ctx.restaurant_id:
            raise InvalidTableError(
                "Table does not belong to this restaurant",
                {"table_id": str(block_data.table_id)},
            )

    block = await store.create(Block, restaurant_id=ctx.restaurant_id, **block_data.model_dump())
    await audit.record(
        store, ctx, "create", block.id,
        after={
            "date": block.date.isoformat(),
            "service_type": block.service_type.value if block.service_type else None,
            "table_id": str(block.table_id) if block.table_id else None,
        },
        resource_type="block",
    )
    return block


@blocks_router.delete("/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_block(
    block_id: UUID,
    ctx: RequestContext = Depends(restaurant_context(UserRole.RESTAURANT_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Reopen what a block closed"""
    store = EntityStore(db)
    await store.delete(Block, block_id, ctx.restaurant_id)
    await audit.record(store, ctx, "delete", block_id, resource_type="block")
