from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from users.permissions import IsAdminOrHigher, IsPOSOperator
from .serializers import StockItemSerializer, StockAdjustmentSerializer
from .services import InventoryService


class StockItemListView(APIView):
    """Current stock levels (getStockItems)."""

    permission_classes = [IsPOSOperator]

    def get(self, request, *args, **kwargs):
        serializer = StockItemSerializer(InventoryService.get_stock_items(), many=True)
        return Response(serializer.data)


class AdjustStockView(APIView):
    """
    An endpoint to add or remove stock from a single stock item.
    - Positive quantity: adds stock.
    - Negative quantity: removes stock.
    """

    permission_classes = [IsAdminOrHigher]

    def post(self, request, *args, **kwargs):
        serializer = StockAdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        stock_item = InventoryService.adjust_stock(
            serializer.validated_data["stock_item_id"],
            serializer.validated_data["quantity"],
            reason=serializer.validated_data["reason"],
            user=request.user,
        )
        return Response(StockItemSerializer(stock_item).data, status=status.HTTP_200_OK)
