from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from users.permissions import IsPOSOperator
from .serializers import (
    TabSerializer,
    TabCreateSerializer,
    TabItemsSerializer,
    TabTransferSerializer,
)
from .services import TabService, UNCHANGED


class TabListCreateView(APIView):
    permission_classes = [IsPOSOperator]

    def get(self, request, *args, **kwargs):
        return Response(TabSerializer(TabService.list_tabs(), many=True).data)

    def post(self, request, *args, **kwargs):
        serializer = TabCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        tab = TabService.create(**serializer.validated_data)
        return Response(TabSerializer(tab).data, status=status.HTTP_201_CREATED)


class TabDetailView(APIView):
    permission_classes = [IsPOSOperator]

    def get(self, request, pk, *args, **kwargs):
        return Response(TabSerializer(TabService.get_tab(pk)).data)

    def delete(self, request, pk, *args, **kwargs):
        """Close the tab. Tabs that still hold items stay open."""
        if TabService.close(pk):
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response({"closed": False, "detail": "Tab still holds items or does not exist."})


class TabAddOrderView(APIView):
    permission_classes = [IsPOSOperator]

    def post(self, request, pk, *args, **kwargs):
        serializer = TabItemsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        tab = TabService.add_current_order(
            pk,
            serializer.validated_data["items"],
            user=request.user,
            table_id=serializer.validated_data.get("table_id", UNCHANGED),
        )
        return Response(TabSerializer(tab).data)


class TabItemsView(APIView):
    """GET loads the tab's (name-repaired) lines; PUT overwrites them."""

    permission_classes = [IsPOSOperator]

    def get(self, request, pk, *args, **kwargs):
        return Response({"items": [item.to_dict() for item in TabService.load(pk)]})

    def put(self, request, pk, *args, **kwargs):
        serializer = TabItemsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        tab = TabService.save(
            pk,
            serializer.validated_data["items"],
            table_id=serializer.validated_data.get("table_id", UNCHANGED),
        )
        return Response(TabSerializer(tab).data)


class TabTransferView(APIView):
    permission_classes = [IsPOSOperator]

    def post(self, request, pk, *args, **kwargs):
        serializer = TabTransferSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        source, destination = TabService.transfer(
            pk,
            serializer.validated_data["destination"],
            serializer.validated_data["items"],
            till_id=serializer.validated_data["till_id"],
            till_name=serializer.validated_data["till_name"],
        )
        return Response(
            {"source": TabSerializer(source).data, "destination": TabSerializer(destination).data}
        )
