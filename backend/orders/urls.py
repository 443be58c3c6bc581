from django.urls import path
from .views import (
    CurrentOrderSessionView,
    OrderSessionLogoutView,
    OrderSessionCompleteView,
    OrderSessionAssignTabView,
)

app_name = "orders"

urlpatterns = [
    path("current/", CurrentOrderSessionView.as_view(), name="current-session"),
    path("current/logout/", OrderSessionLogoutView.as_view(), name="current-session-logout"),
    path("current/complete/", OrderSessionCompleteView.as_view(), name="current-session-complete"),
    path("current/assign-tab/", OrderSessionAssignTabView.as_view(), name="current-session-assign-tab"),
]
