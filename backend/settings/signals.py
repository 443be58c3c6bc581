from django.db.models.signals import post_save
from django.dispatch import receiver
from .models import GlobalSettings
from .config import app_settings
from core_backend.infrastructure.events import event_bus, DATA_CHANGED
import logging

logger = logging.getLogger(__name__)


@receiver(post_save, sender=GlobalSettings)
def reload_app_settings(sender, instance, **kwargs):
    """
    Keep the AppSettings singleton in step with the database row.
    """
    app_settings.reset()
    logger.info(f"GlobalSettings changed (tax_mode={instance.tax_mode}); AppSettings will reload")
    event_bus.publish(DATA_CHANGED, sender=GlobalSettings, resource="settings")
