from django.contrib.auth.signals import user_logged_out
from django.dispatch import receiver
import logging

from core_backend.exceptions import TransientPersistenceError
from .services import OrderSessionService

logger = logging.getLogger(__name__)


@receiver(user_logged_out)
def park_session_on_logout(sender, request, user, **kwargs):
    """
    Soft-mark the operator's cart as pending_logout so the same cart comes
    back on their next login.
    """
    if user is None:
        return
    try:
        OrderSessionService.mark_logout(user)
    except TransientPersistenceError as e:
        logger.warning(f"Could not park order session for user {user.pk} on logout: {e.details}")
