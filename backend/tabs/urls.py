from django.urls import path
from .views import (
    TabListCreateView,
    TabDetailView,
    TabAddOrderView,
    TabItemsView,
    TabTransferView,
)

app_name = "tabs"

urlpatterns = [
    path("", TabListCreateView.as_view(), name="tab-list"),
    path("<int:pk>/", TabDetailView.as_view(), name="tab-detail"),
    path("<int:pk>/add-order/", TabAddOrderView.as_view(), name="tab-add-order"),
    path("<int:pk>/items/", TabItemsView.as_view(), name="tab-items"),
    path("<int:pk>/transfer/", TabTransferView.as_view(), name="tab-transfer"),
]
