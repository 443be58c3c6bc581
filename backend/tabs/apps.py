from django.apps import AppConfig


class TabsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "tabs"

    def ready(self):
        """
        Import signals when the app is ready to ensure they are registered.
        """
        import tabs.signals  # noqa
