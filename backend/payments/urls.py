from django.urls import path
from .views import SettleOrderView

app_name = "payments"

urlpatterns = [
    path("settle/", SettleOrderView.as_view(), name="settle"),
]
