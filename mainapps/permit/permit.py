from rest_framework import permissions

from . import policies


class IsOnboarded(permissions.BasePermission):
    """
    Allows access only to signed-in users who finished onboarding.
    """
    message = 'Please complete onboarding first.'

    def has_permission(self, request, view):
        return policies.is_onboarded(request.user)


class IsAdminRole(permissions.BasePermission):
    """
    Allows access only to marketplace administrators.
    """

    def has_permission(self, request, view):
        return policies.is_admin(request.user)


class IsDonorOrReadOnly(permissions.BasePermission):
    """
    Anyone onboarded may read; only donors may create.
    """

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return policies.can_donate(request.user)


class CharityAccessPermission(permissions.BasePermission):
    """
    Reads are public (the queryset is scoped by policies.visible_charities).
    Creating needs an onboarded charity-role user; changing needs ownership.
    """

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        if not policies.is_onboarded(request.user):
            return False
        if view.action == 'create':
            return policies.is_charity_user(request.user)
        return request.user.is_authenticated

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True
        return policies.owns_charity(request.user, obj)
