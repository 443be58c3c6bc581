from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from core_backend.exceptions import NotFoundError
from users.permissions import IsPOSOperator
from .serializers import OrderSessionSerializer, OrderSessionWriteSerializer
from .services import OrderSessionService


class CurrentOrderSessionView(APIView):
    """
    GET: the operator's active session (restoring one parked by logout).
    POST: write the cart; 201 when a new session was created, 200 otherwise.
    """

    permission_classes = [IsPOSOperator]

    def get(self, request, *args, **kwargs):
        session = OrderSessionService.get_current(request.user)
        if session is None:
            raise NotFoundError("No active order session found")
        return Response(OrderSessionSerializer(session).data)

    def post(self, request, *args, **kwargs):
        serializer = OrderSessionWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        session, created = OrderSessionService.save_current(
            request.user, serializer.validated_data["items"]
        )
        return Response(
            OrderSessionSerializer(session).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class OrderSessionTransitionView(APIView):
    """PUT-only status transition of the active session."""

    permission_classes = [IsPOSOperator]
    transition = None

    def put(self, request, *args, **kwargs):
        session = self.transition(request.user)
        if session is None:
            raise NotFoundError("No active order session found")
        return Response(OrderSessionSerializer(session).data)


class OrderSessionLogoutView(OrderSessionTransitionView):
    transition = staticmethod(OrderSessionService.mark_logout)


class OrderSessionCompleteView(OrderSessionTransitionView):
    transition = staticmethod(OrderSessionService.mark_complete)


class OrderSessionAssignTabView(OrderSessionTransitionView):
    transition = staticmethod(OrderSessionService.mark_assigned_to_tab)
