"""
Shared DRF pagination class.

Every paginated list endpoint returns the same envelope::

    {
        "items": [...],
        "pagination": {
            "current_page": 1,
            "total_pages": 3,
            "total_items": 42,
            "items_per_page": 20
        }
    }

Clients select pages with ``?page=<n>&limit=<size>``.
"""

from __future__ import annotations

import math
from typing import Any

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


class StandardPagination(PageNumberPagination):
    """Page-number pagination with an ``items`` / ``pagination`` envelope."""

    page_size = DEFAULT_PAGE_SIZE
    page_size_query_param = "limit"
    max_page_size = MAX_PAGE_SIZE

    def get_paginated_response(self, data: list[Any]) -> Response:
        paginator = self.page.paginator
        items_per_page = paginator.per_page
        return Response(
            {
                "items": data,
                "pagination": {
                    "current_page": self.page.number,
                    "total_pages": math.ceil(paginator.count / items_per_page) if items_per_page else 0,
                    "total_items": paginator.count,
                    "items_per_page": items_per_page,
                },
            }
        )

    def get_paginated_response_schema(self, schema: dict) -> dict:
        return {
            "type": "object",
            "required": ["items", "pagination"],
            "properties": {
                "items": schema,
                "pagination": {
                    "type": "object",
                    "properties": {
                        "current_page": {"type": "integer"},
                        "total_pages": {"type": "integer"},
                        "total_items": {"type": "integer"},
                        "items_per_page": {"type": "integer"},
                    },
                },
            },
        }


def paginate(view, request, queryset, serializer_class, **serializer_kwargs) -> Response:
    """
    Paginate ``queryset`` for a ``ViewSet`` action and serialize one page.

    ``ViewSet`` (unlike ``GenericViewSet``) carries no paginator, so
    list-style actions call this helper instead.
    """
    paginator = StandardPagination()
    page = paginator.paginate_queryset(queryset, request, view=view)
    serializer = serializer_class(page, many=True, **serializer_kwargs)
    return paginator.get_paginated_response(serializer.data)
