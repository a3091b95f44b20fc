from rest_framework.permissions import BasePermission

from taskhub.policy import Requester, action_for_method, can_access


class TaskAccessPermission(BasePermission):
    """
    Object permission for tasks.

    admin: full access
    user: access only to tasks assigned to them
    """
    message = 'Access denied'

    def has_permission(self, request, view):
        return isinstance(getattr(request, 'auth', None), Requester)

    def has_object_permission(self, request, view, obj):
        return can_access(request.auth, action_for_method(request.method), obj)
