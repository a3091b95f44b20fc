from rest_framework.permissions import BasePermission

from taskhub.policy import Requester, action_for_method, can_access


class IsAdminRole(BasePermission):
    """
    Admin-only endpoints.

    Object checks still go through the access policy, which is what stops an
    admin from deleting their own account.
    """
    message = 'Admin access required'

    def has_permission(self, request, view):
        requester = getattr(request, 'auth', None)
        return isinstance(requester, Requester) and requester.is_admin

    def has_object_permission(self, request, view, obj):
        return can_access(request.auth, action_for_method(request.method), obj)
