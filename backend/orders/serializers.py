from rest_framework import serializers
from .models import OrderSession


class OrderSessionSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderSession
        fields = ["id", "user", "items", "status", "created_at", "updated_at", "logout_time"]
        read_only_fields = fields


class OrderSessionWriteSerializer(serializers.Serializer):
    items = serializers.ListField(child=serializers.DictField(), allow_empty=True)
