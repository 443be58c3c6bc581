from decimal import Decimal
from rest_framework import serializers
from .models import Transaction


class TransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Transaction
        fields = [
            "id",
            "items",
            "subtotal",
            "tax",
            "tip",
            "discount",
            "discount_reason",
            "total",
            "payment_method",
            "status",
            "user",
            "user_name",
            "till_id",
            "till_name",
            "table",
            "table_name",
            "created_at",
        ]
        read_only_fields = fields


class SettlementRequestSerializer(serializers.Serializer):
    items = serializers.ListField(child=serializers.DictField(), allow_empty=False)
    payment_method = serializers.ChoiceField(choices=Transaction.PaymentMethod.choices)
    tip = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, default=Decimal("0"))
    discount = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, default=Decimal("0")
    )
    discount_reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    till_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    till_name = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    tab_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    table_id = serializers.IntegerField(required=False, allow_null=True, default=None)
