import django_filters
from django.db.models import Q

from .models import Priority, Status, Task


class TaskFilter(django_filters.FilterSet):
    """
    Query-string filters for the task list.

    ``assignedTo`` is honoured for admins only; everyone else is already
    limited to their own tasks by the view.
    """
    status = django_filters.ChoiceFilter(choices=Status.choices)
    priority = django_filters.ChoiceFilter(choices=Priority.choices)
    assignedTo = django_filters.NumberFilter(method='filter_assigned_to')
    search = django_filters.CharFilter(method='filter_search')
    dueDateFrom = django_filters.IsoDateTimeFilter(field_name='due_date', lookup_expr='gte')
    dueDateTo = django_filters.IsoDateTimeFilter(field_name='due_date', lookup_expr='lte')

    class Meta:
        model = Task
        fields = []

    def filter_assigned_to(self, queryset, name, value):
        requester = getattr(self.request, 'auth', None)
        if requester is None or not requester.is_admin:
            return queryset
        return queryset.filter(assigned_to_id=value)

    def filter_search(self, queryset, name, value):
        return queryset.filter(Q(title__icontains=value) | Q(description__icontains=value))
