from django.urls import path
from .views import MakableVariantsView

app_name = "products"

urlpatterns = [
    path("makable/", MakableVariantsView.as_view(), name="makable-variants"),
]
