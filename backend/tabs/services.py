"""
Tab Manager: parks carts on named tabs, resumes them, and moves lines
between tabs.

Tabs follow last-write-wins; the only multi-row write is transfer(), which
updates (and, for a new destination, creates) both tabs inside one
transaction so a half-applied move is never visible.
"""
from typing import Iterable, List, Mapping, Optional, Tuple
import logging

from django.db import DatabaseError, IntegrityError, transaction

from core_backend.exceptions import (
    ConflictError,
    NotFoundError,
    TransientPersistenceError,
    ValidationError,
)
from orders.items import (
    ItemLike,
    OrderItem,
    merge_by_variant,
    normalize_items,
    serialize_items,
    subtract_items,
)
from orders.services import OrderSessionService
from tables.models import Table
from .models import Tab

logger = logging.getLogger(__name__)

# Distinguishes "leave the table link alone" from "unlink" (None).
UNCHANGED = object()


class TabService:

    @staticmethod
    def list_tabs() -> List[Tab]:
        return list(Tab.objects.select_related("table"))

    @staticmethod
    def get_tab(tab_id, for_update: bool = False) -> Tab:
        queryset = Tab.objects.select_for_update() if for_update else Tab.objects
        try:
            return queryset.get(pk=tab_id)
        except (Tab.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Tab {tab_id} not found")

    @staticmethod
    def get_items(tab: Tab) -> List[OrderItem]:
        return normalize_items(tab.items)

    @staticmethod
    def _clean_name(name, exclude_tab_id=None) -> str:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Tab name is required and must be a non-empty string")
        name = name.strip()
        duplicates = Tab.objects.filter(name=name)
        if exclude_tab_id is not None:
            duplicates = duplicates.exclude(pk=exclude_tab_id)
        if duplicates.exists():
            raise ConflictError("A tab with this name already exists", details={"name": name})
        return name

    @staticmethod
    def _resolve_table(table_id) -> Optional[Table]:
        if table_id is None:
            return None
        try:
            return Table.objects.get(pk=table_id)
        except (Table.DoesNotExist, ValueError, TypeError):
            raise NotFoundError("Table not found", details={"table_id": table_id})

    @staticmethod
    def _save(tab: Tab, fields=None) -> Tab:
        try:
            tab.save(update_fields=fields)
        except IntegrityError:
            raise ConflictError("A tab with this name already exists", details={"name": tab.name})
        except DatabaseError as e:
            logger.error(f"Failed to save tab '{tab.name}': {e}")
            raise TransientPersistenceError(details={"operation": "save_tab"})
        return tab

    @staticmethod
    def create(
        name: str,
        till_id=None,
        till_name: str = "",
        table_id=None,
        items: Optional[Iterable[ItemLike]] = None,
    ) -> Tab:
        """Open a new tab, empty unless items are given."""
        tab = Tab(
            name=TabService._clean_name(name),
            items=serialize_items(items or []),
            till_id=till_id,
            till_name=till_name or "",
            table=TabService._resolve_table(table_id),
        )
        TabService._save(tab)
        logger.info(f"Created tab '{tab.name}' (id={tab.id}, table={tab.table_id})")
        return tab

    @staticmethod
    def add_current_order(
        tab_id,
        items: Iterable[ItemLike],
        user=None,
        store=None,
        table_id=UNCHANGED,
    ) -> Tab:
        """
        Merge the cart into a tab by variant, then clear the cart and mark
        the operator's session as parked on a tab.
        """
        incoming = normalize_items(items)
        with transaction.atomic():
            tab = TabService.get_tab(tab_id, for_update=True)
            if not incoming:
                logger.debug(f"add_current_order: empty cart, tab '{tab.name}' unchanged")
                return tab

            tab.items = serialize_items(merge_by_variant(TabService.get_items(tab), incoming))
            fields = ["items", "updated_at"]
            if table_id is not UNCHANGED:
                tab.table = TabService._resolve_table(table_id)
                fields.append("table")
            TabService._save(tab, fields)

        logger.info(f"Added {len(incoming)} line(s) to tab '{tab.name}'")

        if store is not None:
            store.clear(log_activity=False)
            logger.info("Cleared cart after parking it on a tab")
        if user is not None:
            try:
                OrderSessionService.mark_assigned_to_tab(user)
            except TransientPersistenceError as e:
                logger.warning(f"Could not mark session as assigned to tab '{tab.name}': {e.details}")
        return tab

    @staticmethod
    def load(tab_id, store=None) -> List[OrderItem]:
        """Return the tab's items (names repaired); replaces the cart when a store is given."""
        tab = TabService.get_tab(tab_id)
        items = TabService.get_items(tab)
        if store is not None:
            store.replace_items(items)
        logger.info(f"Loaded tab '{tab.name}' ({len(items)} lines)")
        return items

    @staticmethod
    def save(tab_id, items: Iterable[ItemLike], store=None, table_id=UNCHANGED) -> Tab:
        """Overwrite the tab's lines with the cart, then clear the cart. The tab stays open."""
        normalized = normalize_items(items)
        tab = TabService.get_tab(tab_id)
        tab.items = serialize_items(normalized)
        fields = ["items", "updated_at"]
        if table_id is not UNCHANGED:
            tab.table = TabService._resolve_table(table_id)
            fields.append("table")
        TabService._save(tab, fields)
        logger.info(f"Saved {len(normalized)} line(s) to tab '{tab.name}'")

        if store is not None:
            store.clear(log_activity=False)
        return tab

    @staticmethod
    def set_table(tab_id, table_id) -> Tab:
        """Link or unlink a table without re-running assignment checks."""
        tab = TabService.get_tab(tab_id)
        tab.table = TabService._resolve_table(table_id)
        return TabService._save(tab, ["table", "updated_at"])

    @staticmethod
    def close(tab_id) -> bool:
        """
        Delete a tab only if it holds no items. A non-empty or missing tab is
        left alone. Returns True when a tab was deleted.
        """
        tab = Tab.objects.filter(pk=tab_id).first()
        if tab is None:
            logger.debug(f"close: tab {tab_id} already gone")
            return False
        if not tab.is_empty:
            logger.info(f"close: tab '{tab.name}' still holds {len(tab.items)} line(s), not closing")
            return False
        tab.delete()
        logger.info(f"Closed empty tab '{tab.name}'")
        return True

    @staticmethod
    def delete(tab_id) -> bool:
        """Unconditional delete used by settlement. Missing tabs are a no-op."""
        try:
            deleted, _ = Tab.objects.filter(pk=tab_id).delete()
        except DatabaseError as e:
            logger.error(f"Failed to delete tab {tab_id}: {e}")
            raise TransientPersistenceError(details={"operation": "delete_tab", "tab_id": tab_id})
        if not deleted:
            logger.debug(f"delete: tab {tab_id} already gone")
        return bool(deleted)

    @staticmethod
    def transfer(
        source_tab_id,
        destination: Mapping,
        items_to_move: Iterable[ItemLike],
        till_id=None,
        till_name: str = "",
    ) -> Tuple[Tab, Tab]:
        """
        Move lines from one tab to another.

        destination is {"tab_id": <id>} for an existing tab or {"name": <str>}
        for a new one. Moved lines are merged into the destination by variant
        (new lines get a fresh id) and decremented on the source by item id;
        source lines that reach zero are dropped. Both tabs are written in one
        transaction.
        """
        moving = normalize_items(items_to_move)
        if not isinstance(destination, Mapping) or not (
            destination.get("tab_id") is not None or destination.get("name")
        ):
            raise ValidationError("Destination must name an existing tab_id or a new tab name")

        try:
            with transaction.atomic():
                source = TabService.get_tab(source_tab_id, for_update=True)
                source_items = subtract_items(TabService.get_items(source), moving)

                if destination.get("tab_id") is not None:
                    target = TabService.get_tab(destination["tab_id"], for_update=True)
                    if target.pk == source.pk:
                        raise ValidationError("Cannot transfer items to the same tab")
                else:
                    target = Tab(
                        name=TabService._clean_name(destination["name"]),
                        till_id=till_id if till_id is not None else source.till_id,
                        till_name=till_name or source.till_name,
                    )

                target.items = serialize_items(merge_by_variant(TabService.get_items(target), moving))
                source.items = serialize_items(source_items)

                TabService._save(source, ["items", "updated_at"])
                TabService._save(target)
        except DatabaseError as e:
            logger.error(f"Transfer from tab {source_tab_id} failed and was rolled back: {e}")
            raise TransientPersistenceError(details={"operation": "transfer"})

        logger.info(
            f"Transferred {sum(item.quantity for item in moving)} unit(s) "
            f"from tab '{source.name}' to tab '{target.name}'"
        )
        return source, target
