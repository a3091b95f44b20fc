from django.urls import path, include
from rest_framework.routers import SimpleRouter
from task.adapters.viewset.task_viewset import TaskViewset

router = SimpleRouter()
router.trailing_slash = '/?'
router.register(r'tasks', TaskViewset, basename='task')

urlpatterns = [
    path('', include(router.urls)),
]
