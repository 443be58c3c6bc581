from rest_framework import serializers
from .models import Tab


class TabSerializer(serializers.ModelSerializer):
    table_name = serializers.CharField(source="table.name", read_only=True, default=None)

    class Meta:
        model = Tab
        fields = ["id", "name", "items", "till_id", "till_name", "table", "table_name", "created_at", "updated_at"]
        read_only_fields = fields


class TabCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    till_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    till_name = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    table_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    items = serializers.ListField(child=serializers.DictField(), required=False, default=list)


class TabItemsSerializer(serializers.Serializer):
    items = serializers.ListField(child=serializers.DictField(), allow_empty=True)
    table_id = serializers.IntegerField(required=False, allow_null=True)


class TabTransferSerializer(serializers.Serializer):
    destination = serializers.DictField()
    items = serializers.ListField(child=serializers.DictField(), allow_empty=True)
    till_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    till_name = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")

    def validate_destination(self, value):
        if value.get("tab_id") is None and not value.get("name"):
            raise serializers.ValidationError("Destination must name an existing tab_id or a new tab name")
        return value
