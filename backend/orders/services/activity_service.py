from typing import Any, Optional
import logging

from django.db import DatabaseError

from orders.models import OrderActivityLog

logger = logging.getLogger(__name__)


class OrderActivityLogService:
    """Fire-and-forget sink for cart audit entries. Writes never raise."""

    @staticmethod
    def record(action: str, details: Any, user=None, user_name: str = "") -> Optional[OrderActivityLog]:
        if action not in OrderActivityLog.Action.values:
            logger.warning(f"Ignoring activity log with unknown action '{action}'")
            return None

        if user is not None and not getattr(user, "is_authenticated", False):
            user = None
        if not user_name and user is not None:
            user_name = getattr(user, "display_name", "") or str(user)

        try:
            entry = OrderActivityLog.objects.create(
                action=action,
                details=details if details is not None else {},
                user=user,
                user_name=user_name,
            )
        except DatabaseError as e:
            logger.warning(f"Could not record '{action}' activity for {user_name or 'unknown user'}: {e}")
            return None

        logger.info(f"Activity logged: {action} by {user_name or 'unknown user'}")
        return entry
