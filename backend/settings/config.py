"""
Centralized configuration management using the Singleton pattern.
This module provides a single point of access to business settings (the
"getSettings()" collaborator of the order engine), eliminating the need for
direct database queries from business logic.
"""

from typing import Optional, Any
from django.core.exceptions import ImproperlyConfigured
import logging

logger = logging.getLogger(__name__)


class AppSettings:
    """
    A LAZY singleton class that provides centralized access to business settings.
    It defers database loading until the first setting is accessed, allowing management
    commands like 'migrate' to run before the database schema is up to date.
    """

    _instance: Optional["AppSettings"] = None
    _initialized: bool = False

    def __new__(cls) -> "AppSettings":
        """
        Implement the singleton pattern to ensure only one instance exists.
        """
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """
        Initialization is deferred to the first attribute access.
        """
        pass

    def _setup(self):
        """
        The actual setup and loading method. Called only once.
        """
        if not self._initialized:
            self.load_settings()
            self._initialized = True

    def __getattr__(self, name: str) -> Any:
        """
        Lazily loads settings on first access, then retrieves the attribute.
        """
        if name.startswith("__"):
            raise AttributeError(name)

        if not self._initialized:
            self._setup()

        # After setup, the attribute should exist in the instance's __dict__.
        # This check prevents infinite recursion for attributes that truly don't exist.
        try:
            return self.__dict__[name]
        except KeyError:
            raise AttributeError(f"'AppSettings' object has no attribute '{name}'")

    def load_settings(self) -> None:
        """
        Load settings from the database and populate instance attributes.
        """
        # Import here to avoid circular imports
        from .models import GlobalSettings

        try:
            settings_obj = GlobalSettings.load()

            # === TAX ===
            self.tax_mode: str = settings_obj.tax_mode

            # === FINANCIAL SETTINGS ===
            self.currency: str = settings_obj.currency

            # === BUSINESS DAY (reporting only) ===
            self.business_day_end_hour: int = settings_obj.business_day_end_hour

        except Exception as e:
            raise ImproperlyConfigured(f"Failed to load settings: {e}")

    def reload(self) -> None:
        """
        Reload settings from the database.
        This method is called when settings are updated to refresh the cache.
        """
        self.load_settings()
        self._initialized = True
        logger.info("AppSettings cache reloaded")

    def reset(self) -> None:
        """Forget loaded values; the next attribute access reloads them."""
        for key in ("tax_mode", "currency", "business_day_end_hour"):
            self.__dict__.pop(key, None)
        self._initialized = False

    def get_tax_settings(self) -> dict:
        """Tax configuration as consumed by the tax calculator."""
        return {"mode": self.tax_mode}

    def get_financial_settings(self) -> dict:
        return {
            "currency": self.currency,
            "tax_mode": self.tax_mode,
        }

    def __str__(self) -> str:
        return f"AppSettings(tax_mode={self.tax_mode}, currency={self.currency})"


# Create the singleton instance at module level
app_settings = AppSettings()
