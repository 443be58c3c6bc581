from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from tabs.serializers import TabSerializer
from users.permissions import IsPOSOperator
from .models import Table
from .serializers import TableSerializer, TableAssignSerializer, TableSyncSerializer
from .services import TableAssignmentService


class TableListView(APIView):
    permission_classes = [IsPOSOperator]

    def get(self, request, *args, **kwargs):
        tables = Table.objects.select_related("room")
        return Response(TableSerializer(tables, many=True).data)


class TableAssignView(APIView):
    """
    Assign an available table to the active tab, or open a tab for it.
    Occupied and otherwise unavailable tables are refused with 409.
    """

    permission_classes = [IsPOSOperator]

    def post(self, request, pk, *args, **kwargs):
        serializer = TableAssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        tab = TableAssignmentService.assign(pk, **serializer.validated_data)
        return Response(TabSerializer(tab).data, status=status.HTTP_200_OK)


class TableReleaseView(APIView):
    permission_classes = [IsPOSOperator]

    def post(self, request, pk, *args, **kwargs):
        released = TableAssignmentService.release(pk)
        return Response({"released": released})


class TableSyncView(APIView):
    """Move the active tab to another table (or unlink it) without availability checks."""

    permission_classes = [IsPOSOperator]

    def post(self, request, *args, **kwargs):
        serializer = TableSyncSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        tab = TableAssignmentService.sync_with_active_tab(
            serializer.validated_data["active_tab_id"], serializer.validated_data["table_id"]
        )
        return Response(TabSerializer(tab).data)
