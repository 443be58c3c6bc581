"""
Table occupancy follows the tabs parked on it: a tab saved against a table
marks it occupied; once no tab references a table any more it is available
again.
"""
from django.db.models.signals import pre_save, post_save, post_delete
from django.dispatch import receiver
import logging

from core_backend.infrastructure.events import event_bus, TAB_CHANGED, TABLE_CHANGED
from tables.models import Table
from .models import Tab

logger = logging.getLogger(__name__)


def _free_table_if_unused(table_id, exclude_tab_id=None) -> None:
    if table_id is None:
        return
    others = Tab.objects.filter(table_id=table_id)
    if exclude_tab_id is not None:
        others = others.exclude(pk=exclude_tab_id)
    if others.exists():
        return
    updated = Table.objects.filter(pk=table_id, status=Table.Status.OCCUPIED).update(
        status=Table.Status.AVAILABLE
    )
    if updated:
        logger.info(f"Table {table_id} has no open tabs left, marked available")
        event_bus.publish(TABLE_CHANGED, sender=Tab, table_id=table_id, status=Table.Status.AVAILABLE)


@receiver(pre_save, sender=Tab)
def remember_previous_table(sender, instance, **kwargs):
    instance._previous_table_id = None
    if instance.pk:
        instance._previous_table_id = (
            Tab.objects.filter(pk=instance.pk).values_list("table_id", flat=True).first()
        )


@receiver(post_save, sender=Tab)
def sync_table_occupancy(sender, instance, created, **kwargs):
    previous_table_id = getattr(instance, "_previous_table_id", None)
    if previous_table_id and previous_table_id != instance.table_id:
        _free_table_if_unused(previous_table_id, exclude_tab_id=instance.pk)

    if instance.table_id:
        updated = (
            Table.objects.filter(pk=instance.table_id)
            .exclude(status=Table.Status.OCCUPIED)
            .update(status=Table.Status.OCCUPIED)
        )
        if updated:
            logger.info(f"Tab '{instance.name}' parked on table {instance.table_id}, marked occupied")
            event_bus.publish(
                TABLE_CHANGED, sender=Tab, table_id=instance.table_id, status=Table.Status.OCCUPIED
            )

    event_bus.publish(TAB_CHANGED, sender=Tab, tab_id=instance.pk, created=created)


@receiver(post_delete, sender=Tab)
def release_table_on_delete(sender, instance, **kwargs):
    _free_table_if_unused(instance.table_id)
    event_bus.publish(TAB_CHANGED, sender=Tab, tab_id=instance.pk, deleted=True)
