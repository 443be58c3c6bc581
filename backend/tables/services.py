from typing import Optional
import logging

from django.db import DatabaseError

from core_backend.exceptions import ConflictError, NotFoundError, TransientPersistenceError
from core_backend.infrastructure.events import event_bus, TABLE_CHANGED
from tabs.models import Tab
from tabs.services import TabService
from .models import Table

logger = logging.getLogger(__name__)


class TableAssignmentService:
    """
    Links the operator's active tab to a physical table.

    Occupancy is not written here: saving a tab against a table marks the
    table occupied (see tabs.signals). Releasing a table after settlement is.
    """

    @staticmethod
    def get_table(table_id) -> Table:
        try:
            return Table.objects.get(pk=table_id)
        except (Table.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Table with ID {table_id} not found")

    @staticmethod
    def unavailable_message(table: Table) -> str:
        if table.status == Table.Status.OCCUPIED:
            return "This table is currently occupied. Please select another table."
        return f"This table is currently {table.status.replace('_', ' ')}. Please select another table."

    @staticmethod
    def assign(table_id, active_tab_id=None, till_id=None, till_name: str = "") -> Tab:
        """
        Bind an available table to the active tab, or open a tab named after
        the table when there is no active tab.
        """
        table = TableAssignmentService.get_table(table_id)
        if not table.is_assignable:
            logger.warning(f"Table {table.name} is {table.status}, refusing assignment")
            raise ConflictError(
                TableAssignmentService.unavailable_message(table),
                details={"table_id": table.pk, "status": table.status},
            )

        if active_tab_id is not None:
            tab = TabService.set_table(active_tab_id, table.pk)
            logger.info(f"Assigned table {table.name} to tab '{tab.name}'")
        else:
            tab = TabService.create(
                name=f"Table {table.name}",
                till_id=till_id,
                till_name=till_name,
                table_id=table.pk,
            )
            logger.info(f"Opened tab '{tab.name}' for table {table.name}")
        return tab

    @staticmethod
    def sync_with_active_tab(active_tab_id, table_id) -> Optional[Tab]:
        """
        Point the active tab at another table (or none) without the
        availability check; used when moving a tab between tables.
        """
        if active_tab_id is None:
            logger.debug("sync_with_active_tab: no active tab")
            return None
        return TabService.set_table(active_tab_id, table_id)

    @staticmethod
    def unassign(active_tab_id) -> Optional[Tab]:
        return TableAssignmentService.sync_with_active_tab(active_tab_id, None)

    @staticmethod
    def release(table_id) -> bool:
        """
        Set a table back to available after settlement. Releasing a missing
        or already available table is a no-op.
        """
        if table_id is None:
            return False
        try:
            updated = (
                Table.objects.filter(pk=table_id)
                .exclude(status=Table.Status.AVAILABLE)
                .update(status=Table.Status.AVAILABLE)
            )
        except DatabaseError as e:
            logger.error(f"Failed to release table {table_id}: {e}")
            raise TransientPersistenceError(details={"operation": "release_table", "table_id": table_id})

        if updated:
            logger.info(f"Released table {table_id}")
            event_bus.publish(TABLE_CHANGED, sender=TableAssignmentService, table_id=table_id, status=Table.Status.AVAILABLE)
        else:
            logger.debug(f"release: table {table_id} missing or already available")
        return bool(updated)
