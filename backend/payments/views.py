from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from users.permissions import IsPOSOperator
from .serializers import SettlementRequestSerializer, TransactionSerializer
from .services import PaymentSettlementService, SettlementRequest


class SettleOrderView(APIView):
    """
    Confirm payment for the operator's cart.

    Business-rule rejections (bad discount, missing admin rights) come back
    as 4xx with the violated rule; cleanup problems after the sale is
    recorded are returned as warnings on a 201.
    """

    permission_classes = [IsPOSOperator]

    def post(self, request, *args, **kwargs):
        serializer = SettlementRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = PaymentSettlementService.settle(
            SettlementRequest(user=request.user, **serializer.validated_data)
        )
        return Response(
            {
                "transaction": TransactionSerializer(result.transaction).data,
                "status": result.status,
                "warnings": result.warnings,
            },
            status=status.HTTP_201_CREATED,
        )
