from rest_framework import serializers
from .models import StockItem


class StockItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = StockItem
        fields = ["id", "name", "quantity", "updated_at"]
        read_only_fields = fields


class StockAdjustmentSerializer(serializers.Serializer):
    stock_item_id = serializers.UUIDField()
    quantity = serializers.IntegerField()
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")

    def validate_quantity(self, value):
        if value == 0:
            raise serializers.ValidationError("Quantity must not be zero.")
        return value
