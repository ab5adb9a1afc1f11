import math

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


def parse_limit(value, default=None, maximum=100):
    """Positive integer from a query string value, capped at `maximum`; `default` otherwise."""
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return default
    if limit <= 0:
        return default
    return min(limit, maximum)


class EntityPagination(PageNumberPagination):
    """
    Page/limit pagination rendered as
    {"entities": [...], "pagination": {"pages": n, "page": p, "limit": l}}.
    """
    page_size = 20
    page_query_param = 'page'
    page_size_query_param = 'limit'
    max_page_size = 100

    def requested_page(self, request):
        """Requested page; missing, malformed or non-positive values mean the first page."""
        try:
            page_number = int(request.query_params.get(self.page_query_param, 1))
        except (TypeError, ValueError):
            return 1
        return max(page_number, 1)

    def paginate_queryset(self, queryset, request, view=None):
        # A page past the end is an empty page, not a 404.
        self.request = request
        self.limit = self.get_page_size(request)
        self.page_number = self.requested_page(request)
        paginator = self.django_paginator_class(queryset, self.limit)
        self.count = paginator.count
        if self.page_number > paginator.num_pages:
            return []
        self.page = paginator.page(self.page_number)
        return list(self.page)

    def get_paginated_response(self, data):
        return Response({
            'entities': data,
            'pagination': {
                'pages': math.ceil(self.count / self.limit),
                'page': self.page_number,
                'limit': self.limit,
            },
        })

    def get_paginated_response_schema(self, schema):
        return {
            'type': 'object',
            'required': ['entities', 'pagination'],
            'properties': {
                'entities': schema,
                'pagination': {
                    'type': 'object',
                    'properties': {
                        'pages': {'type': 'integer', 'example': 3},
                        'page': {'type': 'integer', 'example': 1},
                        'limit': {'type': 'integer', 'example': 20},
                    },
                },
            },
        }
