from typing import Iterable, Optional, Tuple
import logging

from django.db import DatabaseError, transaction
from django.utils import timezone

from core_backend.exceptions import AuthorizationError, TransientPersistenceError
from core_backend.infrastructure.events import event_bus, SESSION_CHANGED
from orders.items import ItemLike, serialize_items
from orders.models import OrderSession

logger = logging.getLogger(__name__)


def _is_authenticated(user) -> bool:
    return bool(user is not None and getattr(user, "is_authenticated", False))


class OrderSessionService:
    """
    Persistence of the per-operator cart (getOrderSession / saveOrderSession /
    updateOrderSessionStatus).

    Status transitions are fail-soft: with no authenticated user or no active
    session they log and return None instead of raising, because session
    bookkeeping must never block checkout.
    """

    @staticmethod
    def get_current(user) -> Optional[OrderSession]:
        """
        Return the user's active session. A session parked by logout is
        restored to active (in the same transaction) when no active one
        exists. Returns None when the user has neither.
        """
        if not _is_authenticated(user):
            logger.warning("get_current called without an authenticated user")
            return None

        try:
            with transaction.atomic():
                session = (
                    OrderSession.objects.select_for_update()
                    .filter(user=user, status=OrderSession.Status.ACTIVE)
                    .first()
                )
                if session is not None:
                    logger.debug(f"Found active session {session.id} with {len(session.items)} items")
                    return session

                session = (
                    OrderSession.objects.select_for_update()
                    .filter(user=user, status=OrderSession.Status.PENDING_LOGOUT)
                    .first()
                )
                if session is None:
                    logger.debug(f"No active or pending_logout session for user {user.pk}")
                    return None

                session.status = OrderSession.Status.ACTIVE
                session.logout_time = None
                session.save(update_fields=["status", "logout_time", "updated_at"])
                logger.info(f"Restored session {session.id} for user {user.pk} to active")
                return session
        except DatabaseError as e:
            logger.error(f"Failed to fetch order session for user {user.pk}: {e}")
            raise TransientPersistenceError(details={"operation": "get_current"})

    @staticmethod
    def save_current(user, items: Iterable[ItemLike]) -> Tuple[OrderSession, bool]:
        """
        Write the cart. Updates the active session, else restores a
        pending_logout session (keeping its items when the incoming list is
        empty), else creates a new one.

        An empty list is a real write: it clears whatever the session held.
        Returns (session, created).
        """
        if not _is_authenticated(user):
            raise AuthorizationError("User not authenticated")

        payload = serialize_items(items)

        try:
            with transaction.atomic():
                session = (
                    OrderSession.objects.select_for_update()
                    .filter(user=user, status=OrderSession.Status.ACTIVE)
                    .first()
                )
                created = False
                if session is not None:
                    session.items = payload
                    session.save(update_fields=["items", "updated_at"])
                else:
                    session = (
                        OrderSession.objects.select_for_update()
                        .filter(user=user, status=OrderSession.Status.PENDING_LOGOUT)
                        .first()
                    )
                    if session is not None:
                        session.status = OrderSession.Status.ACTIVE
                        session.logout_time = None
                        fields = ["status", "logout_time", "updated_at"]
                        if payload:
                            session.items = payload
                            fields.append("items")
                        else:
                            logger.info(
                                f"Preserving {len(session.items)} items of session {session.id} "
                                f"(incoming cart is empty)"
                            )
                        session.save(update_fields=fields)
                        logger.info(f"Restored session {session.id} for user {user.pk} to active")
                    else:
                        session = OrderSession.objects.create(user=user, items=payload)
                        created = True
                        logger.info(f"Created session {session.id} for user {user.pk}")
        except DatabaseError as e:
            logger.error(f"Failed to save order session for user {user.pk}: {e}")
            raise TransientPersistenceError(details={"operation": "save_current"})

        event_bus.publish(SESSION_CHANGED, sender=OrderSessionService, session_id=session.id, status=session.status)
        return session, created

    @staticmethod
    def _transition(user, new_status: str, label: str, **extra_fields) -> Optional[OrderSession]:
        if not _is_authenticated(user):
            logger.warning(f"Session {label} skipped: no authenticated user")
            return None

        try:
            with transaction.atomic():
                session = (
                    OrderSession.objects.select_for_update()
                    .filter(user=user, status=OrderSession.Status.ACTIVE)
                    .first()
                )
                if session is None:
                    logger.warning(f"Session {label} skipped: no active session for user {user.pk}")
                    return None

                session.status = new_status
                for field, value in extra_fields.items():
                    setattr(session, field, value)
                session.save(update_fields=["status", "updated_at", *extra_fields.keys()])
        except DatabaseError as e:
            logger.error(f"Session {label} failed for user {user.pk}: {e}")
            raise TransientPersistenceError(details={"operation": label})

        logger.info(f"Session {session.id} for user {user.pk} -> {new_status} ({label})")
        event_bus.publish(SESSION_CHANGED, sender=OrderSessionService, session_id=session.id, status=new_status)
        return session

    @staticmethod
    def mark_logout(user) -> Optional[OrderSession]:
        """Soft-mark the active session; its items are kept for the next login."""
        return OrderSessionService._transition(
            user, OrderSession.Status.PENDING_LOGOUT, "logout", logout_time=timezone.now()
        )

    @staticmethod
    def mark_complete(user) -> Optional[OrderSession]:
        return OrderSessionService._transition(user, OrderSession.Status.COMPLETED, "complete")

    @staticmethod
    def mark_assigned_to_tab(user) -> Optional[OrderSession]:
        """Parking the cart on a tab ends the session like a settlement does."""
        return OrderSessionService._transition(user, OrderSession.Status.COMPLETED, "assign-tab")
