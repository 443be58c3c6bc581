import pytest

from settings.config import app_settings
from settings.models import GlobalSettings, TaxMode


@pytest.mark.django_db
class TestAppSettings:

    def test_defaults_are_created_on_first_access(self):
        assert GlobalSettings.objects.count() == 0

        assert app_settings.tax_mode == TaxMode.EXCLUSIVE
        assert app_settings.currency == "EUR"
        assert GlobalSettings.objects.count() == 1

    def test_saving_settings_invalidates_cache(self):
        assert app_settings.tax_mode == TaxMode.EXCLUSIVE

        settings_obj = GlobalSettings.load()
        settings_obj.tax_mode = TaxMode.INCLUSIVE
        settings_obj.save()

        assert app_settings.tax_mode == TaxMode.INCLUSIVE

    def test_financial_settings(self, tax_mode):
        tax_mode("none", currency="JPY")

        assert app_settings.get_financial_settings() == {"currency": "JPY", "tax_mode": "none"}
        assert app_settings.get_tax_settings() == {"mode": "none"}

    def test_unknown_attribute(self):
        with pytest.raises(AttributeError):
            app_settings.not_a_setting
