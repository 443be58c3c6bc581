from django.apps import AppConfig
import logging

logger = logging.getLogger(__name__)


class CoreBackendConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core_backend"

    def ready(self):
        # The bus is created at import time; importing here makes sure every
        # app's ready() can subscribe without caring about import order.
        from core_backend.infrastructure import events  # noqa: F401

        logger.debug("Order engine event bus ready")
