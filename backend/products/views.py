from rest_framework.response import Response
from rest_framework.views import APIView

from inventory.services import InventoryService
from inventory.validators import compute_makable
from users.permissions import IsPOSOperator
from .services import CatalogService


class MakableVariantsView(APIView):
    """
    Which variants can be rung up with the stock currently on hand.
    Variants with broken stock links are reported as not makable.
    """

    permission_classes = [IsPOSOperator]

    def get(self, request, *args, **kwargs):
        issues = []
        makable = compute_makable(
            CatalogService.get_products(), InventoryService.get_stock_levels(), issues=issues
        )
        return Response(
            {
                "makable_variant_ids": sorted(makable),
                "warnings": [str(issue) for issue in issues],
            }
        )
