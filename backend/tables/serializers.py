from rest_framework import serializers
from .models import Table


class TableSerializer(serializers.ModelSerializer):
    room_name = serializers.CharField(source="room.name", read_only=True, default=None)

    class Meta:
        model = Table
        fields = ["id", "name", "room", "room_name", "status", "updated_at"]
        read_only_fields = fields


class TableAssignSerializer(serializers.Serializer):
    active_tab_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    till_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    till_name = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")


class TableSyncSerializer(serializers.Serializer):
    active_tab_id = serializers.IntegerField()
    table_id = serializers.IntegerField(allow_null=True)
