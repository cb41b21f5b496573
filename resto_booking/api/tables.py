"""Dining table API endpoints"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from resto_booking.context import RequestContext
from resto_booking.database import get_db
from resto_booking.models.schedule import Block
from resto_booking.models.table import Table
from resto_booking.models.user import UserRole
from resto_booking.schemas.table import TableCreate, TableUpdate, TableResponse
from resto_booking.services import audit
from resto_booking.services.tables import check_table_change, check_table_delete
from resto_booking.store import EntityStore
from resto_booking.api.auth import restaurant_context

router = APIRouter()


@router.get("", response_model=List[TableResponse])
async def list_tables(
    include_inactive: bool = False,
    ctx: RequestContext = Depends(restaurant_context()),
    db: AsyncSession = Depends(get_db),
):
    """List the restaurant's tables"""
    store = EntityStore(db)
    criteria = [Table.restaurant_id == ctx.restaurant_id]
    if not include_inactive:
        criteria.append(Table.is_active == True)
    return await store.filter(Table, *criteria, order_by=Table.name)


@router.post("", response_model=TableResponse, status_code=status.HTTP_201_CREATED)
async def create_table(
    table_data: TableCreate,
    ctx: RequestContext = Depends(restaurant_context(UserRole.RESTAURANT_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Add a table"""
    store = EntityStore(db)
    table = await store.create(Table, restaurant_id=ctx.restaurant_id, **table_data.model_dump())
    await audit.record(
        store, ctx, "create", table.id,
        after={"name": table.name, "capacity": table.capacity}, resource_type="table",
    )
    return table


@router.put("/{table_id}", response_model=TableResponse)
async def update_table(
    table_id: UUID,
    table_data: TableUpdate,
    ctx: RequestContext = Depends(restaurant_context(UserRole.RESTAURANT_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Update a table; capacity cuts and deactivation are checked against upcoming bookings"""
    store = EntityStore(db)
    table = await store.get(Table, table_id, ctx.restaurant_id)
    changes = {k: v for k, v in table_data.model_dump(exclude_unset=True).items() if v is not None}

    await check_table_change(store, table, changes)

    before = {"capacity": table.capacity, "is_active": table.is_active}
    await store.update(table, changes)
    await audit.record(
        store, ctx, "update", table.id,
        before=before,
        after={"capacity": table.capacity, "is_active": table.is_active},
        resource_type="table",
    )
    return table


@router.delete("/{table_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_table(
    table_id: UUID,
    ctx: RequestContext = Depends(restaurant_context(UserRole.RESTAURANT_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Delete a table not held by any upcoming reservation"""
    store = EntityStore(db)
    table = await store.get(Table, table_id, ctx.restaurant_id)
    await check_table_delete(store, table)

    snapshot = {"name": table.name, "capacity": table.capacity}
    for block in await store.list(Block, table_id=table_id):
        await store.delete(Block, block.id)
    await store.delete(Table, table_id, ctx.restaurant_id)
    await audit.record(store, ctx, "delete", table_id, before=snapshot, resource_type="table")
