"""Audit trail writer"""

from typing import Any, Dict, Optional
from uuid import UUID

import structlog

from resto_booking.context import RequestContext
from resto_booking.models.audit import AuditLog
from resto_booking.store import EntityStore

logger = structlog.get_logger()


async def record(
    store: EntityStore,
    ctx: RequestContext,
    action: str,
    resource_id: UUID,
    before: Optional[Dict[str, Any]] = None,
    after: Optional[Dict[str, Any]] = None,
    resource_type: str = "reservation",
) -> AuditLog:
    """Append one audit row for an action taken in ``ctx``"""
    entry = await store.create(
        AuditLog,
        restaurant_id=ctx.restaurant_id,
        actor_id=ctx.user_id,
        actor_type=ctx.actor_type,
        actor_name=ctx.actor_name,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        data_json={"before": before or {}, "after": after or {}},
    )
    logger.info(
        "Audit entry recorded",
        restaurant_id=str(ctx.restaurant_id),
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id),
    )
    return entry
