import pytest
from rest_framework import status

from tabs.models import Tab
from tabs.services import TabService

TABS_URL = "/api/tabs/"


@pytest.mark.django_db
class TestTabsAPI:

    def test_create_and_list(self, cashier_client):
        response = cashier_client.post(TABS_URL, {"name": "Smith party", "till_name": "Bar"}, format="json")
        assert response.status_code == status.HTTP_201_CREATED

        response = cashier_client.get(TABS_URL)
        assert [tab["name"] for tab in response.data] == ["Smith party"]

    def test_duplicate_name_is_409(self, cashier_client):
        TabService.create("Smith party")

        response = cashier_client.post(TABS_URL, {"name": "Smith party"}, format="json")

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error"] == "A tab with this name already exists"

    def test_missing_tab_is_404(self, cashier_client):
        assert cashier_client.get(f"{TABS_URL}999/").status_code == status.HTTP_404_NOT_FOUND

    def test_add_order_merges(self, cashier_client, catalog, make_item):
        tab = TabService.create("Bar 1", items=[make_item(catalog["lager"], 1)])

        response = cashier_client.post(
            f"{TABS_URL}{tab.pk}/add-order/", {"items": [make_item(catalog["lager"], 2)]}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["items"][0]["quantity"] == 3

    def test_load_and_save_items(self, cashier_client, catalog, make_item):
        tab = TabService.create("Bar 1", items=[make_item(catalog["lager"], 1)])

        response = cashier_client.put(
            f"{TABS_URL}{tab.pk}/items/", {"items": [make_item(catalog["crisps"], 4)]}, format="json"
        )
        assert response.status_code == status.HTTP_200_OK

        response = cashier_client.get(f"{TABS_URL}{tab.pk}/items/")
        assert response.data["items"][0]["variant_id"] == catalog["crisps"].id
        assert response.data["items"][0]["quantity"] == 4

    def test_delete_keeps_tab_with_items(self, cashier_client, catalog, make_item):
        busy = TabService.create("Busy", items=[make_item(catalog["lager"])])
        empty = TabService.create("Empty")

        response = cashier_client.delete(f"{TABS_URL}{busy.pk}/")
        assert response.status_code == status.HTTP_200_OK
        assert response.data["closed"] is False

        response = cashier_client.delete(f"{TABS_URL}{empty.pk}/")
        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert list(Tab.objects.values_list("name", flat=True)) == ["Busy"]

    def test_transfer(self, cashier_client, catalog, make_item):
        source = TabService.create("Source", items=[make_item(catalog["lager"], 3)])
        line = source.items[0]

        response = cashier_client.post(
            f"{TABS_URL}{source.pk}/transfer/",
            {"destination": {"name": "Split"}, "items": [{**line, "quantity": 1}]},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["source"]["items"][0]["quantity"] == 2
        assert response.data["destination"]["items"][0]["quantity"] == 1

    def test_transfer_needs_destination(self, cashier_client, catalog, make_item):
        source = TabService.create("Source", items=[make_item(catalog["lager"], 3)])

        response = cashier_client.post(
            f"{TABS_URL}{source.pk}/transfer/", {"destination": {}, "items": []}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
