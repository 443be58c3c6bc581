from django.urls import path
from .views import StockItemListView, AdjustStockView

app_name = "inventory"

urlpatterns = [
    path("stock/", StockItemListView.as_view(), name="stock-list"),
    path("stock/adjust/", AdjustStockView.as_view(), name="stock-adjust"),
]
