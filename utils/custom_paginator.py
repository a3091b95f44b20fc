import math

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class CustomPaginator(PageNumberPagination):
    """
    ``?page=&limit=`` pagination.

    A page past the end yields an empty list instead of a 404, and the
    response carries a ``pagination`` block next to the results.
    """
    page_size = 10
    page_size_query_param = 'limit'
    max_page_size = 100
    results_key = 'results'
    total_key = 'totalItems'

    def paginate_queryset(self, queryset, request, view=None):
        self.request = request
        self.limit = self.get_page_size(request)
        try:
            self.current_page = max(int(request.query_params.get(self.page_query_param, 1)), 1)
        except (TypeError, ValueError):
            self.current_page = 1

        self.total_items = queryset.count()
        offset = (self.current_page - 1) * self.limit
        return list(queryset[offset:offset + self.limit])

    def get_paginated_response(self, data):
        total_pages = math.ceil(self.total_items / self.limit) if self.limit else 0
        return Response({
            self.results_key: data,
            'pagination': {
                'currentPage': self.current_page,
                self.total_key: self.total_items,
                'totalPages': total_pages,
                'hasNext': self.current_page < total_pages,
                'hasPrev': self.current_page > 1,
            },
        })


class TaskPaginator(CustomPaginator):
    results_key = 'tasks'
    total_key = 'totalTasks'


class UserPaginator(CustomPaginator):
    results_key = 'users'
    total_key = 'totalUsers'
