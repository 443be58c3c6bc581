from rest_framework import permissions
from .models import User


class IsAdminOrHigher(permissions.BasePermission):
    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role in User.ADMIN_ROLES


class IsPOSOperator(permissions.BasePermission):
    """Any authenticated, active staff role may operate a till."""

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_active and user.role in User.Role.values)
