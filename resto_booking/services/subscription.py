"""Subscription gate for back-office features"""

from datetime import datetime
from typing import Optional

from resto_booking.models.user import User, UserRole


def is_entitled(user: User, now: Optional[datetime] = None) -> bool:
    """Super admins always; others need an active, unexpired subscription"""
    if user.role == UserRole.SUPER_ADMIN:
        return True
    now = now or datetime.utcnow()
    return (
        user.subscription_status == "active"
        and user.subscription_end_date is not None
        and user.subscription_end_date > now
    )
