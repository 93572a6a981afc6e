"""
Role based permission classes, one per staff tier.
"""
from rest_framework.permissions import BasePermission

from .models import Person


class _HasRole(BasePermission):
    role: str = ''

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) == self.role)


class IsSuperAdmin(_HasRole):
    """Only super admins."""
    role = Person.ROLE_SUPER_ADMIN


class IsHospitalAdmin(_HasRole):
    """Only hospital centre admins."""
    role = Person.ROLE_HOSPITAL_ADMIN


class IsDoctor(_HasRole):
    """Only doctors."""
    role = Person.ROLE_DOCTOR
