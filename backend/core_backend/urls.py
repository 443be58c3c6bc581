"""
URL configuration for core_backend project.

Only the order engine surface is routed here; catalog, user and report CRUD
live in their own services.
"""

from django.urls import path, include
from django.http import JsonResponse


def health_check(request):
    """Simple health check endpoint that doesn't require authentication"""
    return JsonResponse({"status": "ok", "message": "Backend is running"})


urlpatterns = [
    path("api/health/", health_check, name="health_check"),
    path("api/order-sessions/", include("orders.urls")),
    path("api/tabs/", include("tabs.urls")),
    path("api/tables/", include("tables.urls")),
    path("api/payments/", include("payments.urls")),
    path("api/products/", include("products.urls")),
    path("api/inventory/", include("inventory.urls")),
]
