from django.urls import include, path, re_path
from rest_framework.routers import SimpleRouter

from .adapters.viewsets import auth_viewset
from .adapters.viewsets.user_viewset import UserViewSet

router = SimpleRouter()
router.trailing_slash = '/?'
router.register(r'users', UserViewSet, basename='user')

urlpatterns = [
    # registration and login, no token needed
    re_path(r'^auth/register/?$', auth_viewset.AuthViewSet.as_view({'post': 'register'}), name='register'),
    re_path(r'^auth/login/?$', auth_viewset.AuthViewSet.as_view({'post': 'login'}), name='login'),
    # the caller's own record
    re_path(
        r'^auth/profile/?$',
        auth_viewset.ProfileViewSet.as_view({'get': 'retrieve', 'put': 'update', 'patch': 'update'}),
        name='profile',
    ),

    # admin-only user management
    path('', include(router.urls)),
]
