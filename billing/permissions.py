"""
Role based permission classes for the billing API.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS

from billing.models import User

ADMIN_ROLES = {User.ROLE_SUPER, User.ROLE_ADMIN}
BILLING_ROLES = ADMIN_ROLES | {User.ROLE_BILLING}
STAFF_ROLES = BILLING_ROLES | {User.ROLE_RECEPTIONIST, User.ROLE_DOCTOR}


def _role(request):
    user = getattr(request, "user", None)
    if not (user and user.is_authenticated):
        return None
    if user.is_superuser:
        return User.ROLE_SUPER
    return getattr(user, "role", None)


class IsAdminRole(BasePermission):
    """Allow access only to administrators."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) in ADMIN_ROLES


class IsBillingStaff(BasePermission):
    """Administrators and billing staff: rates, earnings and doctor payments."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) in BILLING_ROLES


class IsStaffRole(BasePermission):
    """Any hospital staff role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) in STAFF_ROLES


class IsBillingStaffOrReadOnly(BasePermission):
    """Staff may read; only billing roles may write."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        role = _role(request)
        if request.method in SAFE_METHODS:
            return role in STAFF_ROLES
        return role in BILLING_ROLES
