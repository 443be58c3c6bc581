"""
The live cart of one logged-in operator.

OrderSessionStore keeps the in-progress order in memory and writes it through
to the session backend on a debounce, so a burst of clicks becomes a single
write. Loading never raises: any persistence failure degrades to an empty
cart. Only one load/save is in flight at a time; a save requested while a
load is outstanding is queued and replayed once the load has finished.
"""
from dataclasses import replace
from typing import Any, Callable, List, Optional
import logging
import threading

from django.conf import settings
from django.db import DatabaseError, connections

from core_backend.exceptions import OrderEngineError, ValidationError
from core_backend.infrastructure.debounce import DebouncedTask
from orders.items import (
    OrderItem,
    ItemLike,
    new_item_id,
    normalize_item_name,
    normalize_items,
)
from orders.models import OrderActivityLog
from .activity_service import OrderActivityLogService
from .session_service import OrderSessionService

logger = logging.getLogger(__name__)


class DatabaseSessionBackend:
    """Session backend over OrderSessionService."""

    def load(self, user) -> list:
        session = OrderSessionService.get_current(user)
        return list(session.items) if session is not None else []

    def save(self, user, items: List[OrderItem]) -> None:
        OrderSessionService.save_current(user, items)

    def release(self) -> None:
        # Debounced writes run on a timer thread with its own connection.
        connections.close_all()


class OrderSessionStore:

    def __init__(
        self,
        user,
        backend=None,
        delay_ms: Optional[int] = None,
        activity_log: Optional[Callable[..., Any]] = None,
    ):
        self.user = user
        self._backend = backend if backend is not None else DatabaseSessionBackend()
        self._activity_log = activity_log or OrderActivityLogService.record
        if delay_ms is None:
            delay_ms = getattr(settings, "ORDER_SESSION_SAVE_DEBOUNCE_MS", 500)

        self._state_lock = threading.RLock()
        self._io_lock = threading.Lock()
        self._items: List[OrderItem] = []
        self._loading = False
        self._dirty_during_load = False
        self._queued_save: Optional[List[OrderItem]] = None

        self._saver = DebouncedTask(
            self._write,
            delay_ms,
            name=f"order-session:{getattr(user, 'pk', None)}",
            on_timer_exit=getattr(self._backend, "release", None),
        )

    # --- state -----------------------------------------------------------

    @property
    def items(self) -> List[OrderItem]:
        with self._state_lock:
            return list(self._items)

    @property
    def is_loading(self) -> bool:
        with self._state_lock:
            return self._loading

    @property
    def has_pending_save(self) -> bool:
        with self._state_lock:
            return self._saver.pending or self._queued_save is not None

    def _set_items(self, items: List[OrderItem]) -> None:
        with self._state_lock:
            self._items = list(items)
            if self._loading:
                self._dirty_during_load = True
            snapshot = list(self._items)
        self._saver.schedule(snapshot)

    # --- persistence -----------------------------------------------------

    def load(self) -> List[OrderItem]:
        """Restore the cart from the backend. Never raises."""
        with self._state_lock:
            self._loading = True
            # Edits not yet written win over whatever the backend returns.
            self._dirty_during_load = self._saver.pending

        loaded: List[OrderItem] = []
        try:
            with self._io_lock:
                raw = self._backend.load(self.user)
            loaded = normalize_items(raw)
        except Exception as e:
            logger.warning(f"Failed to load order session for user {getattr(self.user, 'pk', None)}: {e}")
            loaded = []
        finally:
            with self._state_lock:
                self._loading = False
                queued, self._queued_save = self._queued_save, None
                if self._dirty_during_load:
                    logger.info("Cart changed while loading; keeping local items")
                else:
                    self._items = loaded
                self._dirty_during_load = False

        if queued is not None:
            logger.info(f"Replaying save queued during load ({len(queued)} items)")
            try:
                self._write(queued)
            except Exception as e:
                logger.warning(f"Replayed save failed for user {getattr(self.user, 'pk', None)}: {e}")

        return self.items

    def _write(self, items: List[OrderItem]) -> None:
        with self._state_lock:
            if self._loading:
                self._queued_save = list(items)
                logger.debug("Load in flight, queueing session save")
                return

        try:
            with self._io_lock:
                self._backend.save(self.user, items)
            logger.debug(f"Saved order session ({len(items)} items)")
        except (DatabaseError, OrderEngineError) as e:
            logger.warning(f"Failed to save order session for user {getattr(self.user, 'pk', None)}: {e}")

    def flush(self) -> bool:
        """Write any debounced save now, on the calling thread."""
        return self._saver.flush()

    def close(self) -> None:
        """Flush pending writes before the store is discarded (logout)."""
        self.flush()
        self._saver.cancel()

    # --- cart mutations --------------------------------------------------

    def _log_activity(self, action: str, details) -> None:
        try:
            self._activity_log(action, details, user=self.user)
        except Exception as e:
            logger.warning(f"Activity log sink failed for '{action}': {e}")

    def add_item(self, variant, product_name: str = "") -> OrderItem:
        """
        Add one unit of a catalog variant. A line for the same variant has
        its quantity bumped; otherwise a new line with a fresh id is added.
        """
        with self._state_lock:
            existing = next((item for item in self._items if item.variant_id == variant.id), None)
            if existing is not None:
                return self.update_quantity(existing.id, existing.quantity + 1)

            name = f"{product_name} - {variant.name}" if product_name else variant.name
            item = normalize_item_name(
                OrderItem(
                    id=new_item_id(),
                    variant_id=variant.id,
                    product_id=variant.product_id,
                    name=name,
                    price=variant.price,
                    quantity=1,
                    effective_tax_rate=variant.effective_tax_rate,
                )
            )
            self._set_items([*self._items, item])
        return item

    def update_quantity(self, item_id: str, new_quantity: int) -> Optional[OrderItem]:
        """
        Set a line's quantity. Zero or less removes the line. Any decrease is
        recorded as an "Item Removed" activity.
        """
        if isinstance(new_quantity, bool) or not isinstance(new_quantity, int):
            raise ValidationError("Quantity must be a whole number")

        with self._state_lock:
            current = next((item for item in self._items if item.id == item_id), None)
            if current is None:
                logger.debug(f"update_quantity: no line {item_id} in cart")
                return None

            if new_quantity < current.quantity:
                removed = current.quantity - new_quantity if new_quantity > 0 else current.quantity
                self._log_activity(
                    OrderActivityLog.Action.ITEM_REMOVED, f"{removed} x {current.name}"
                )

            if new_quantity <= 0:
                self._set_items([item for item in self._items if item.id != item_id])
                return None

            updated = replace(current, quantity=new_quantity)
            self._set_items([updated if item.id == item_id else item for item in self._items])
            return updated

    def remove_item(self, item_id: str) -> None:
        self.update_quantity(item_id, 0)

    def replace_items(self, items: List[ItemLike]) -> List[OrderItem]:
        """Swap the whole cart, e.g. when a tab is loaded."""
        normalized = normalize_items(items)
        self._set_items(normalized)
        return normalized

    def clear(self, log_activity: bool = True) -> None:
        """
        Empty the cart. The empty cart is still written so a stale session
        cannot resurface on the next login.
        """
        with self._state_lock:
            if log_activity and self._items:
                self._log_activity(
                    OrderActivityLog.Action.ORDER_CLEARED,
                    [item.to_dict() for item in normalize_items(self._items)],
                )
            self._set_items([])
