from django.conf import settings
from django.core.paginator import EmptyPage, InvalidPage, Page
from rest_framework.exceptions import NotFound
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class EnvelopePagination(PageNumberPagination):
    """
    Page-number pagination answering with the envelope the POS frontend reads:
    ``{data, current_page, last_page, per_page, total, from, to}``.
    """

    page_size = settings.API_PAGE_SIZE
    page_size_query_param = 'per_page'
    max_page_size = 100

    def paginate_queryset(self, queryset, request, view=None):
        """A page number past the last page yields an empty page, not 404."""
        self.request = request
        paginator = self.django_paginator_class(queryset, self.get_page_size(request))
        page_number = self.get_page_number(request, paginator)

        try:
            self.page = paginator.page(page_number)
        except EmptyPage as exc:
            number = int(page_number) if str(page_number).isdigit() else 0
            if number < 1:
                raise NotFound(self.invalid_page_message.format(page_number=page_number, message=str(exc)))
            self.page = Page([], number, paginator)
        except InvalidPage as exc:
            raise NotFound(self.invalid_page_message.format(page_number=page_number, message=str(exc)))

        return list(self.page)

    def get_paginated_response(self, data):
        page = self.page
        return Response({
            'data': data,
            'current_page': page.number,
            'last_page': page.paginator.num_pages,
            'per_page': page.paginator.per_page,
            'total': page.paginator.count,
            'from': page.start_index() if data else None,
            'to': page.end_index() if data else None,
        })

    def get_paginated_response_schema(self, schema):
        return {
            'type': 'object',
            'required': ['data', 'current_page', 'last_page', 'total'],
            'properties': {
                'data': schema,
                'current_page': {'type': 'integer', 'example': 1},
                'last_page': {'type': 'integer', 'example': 4},
                'per_page': {'type': 'integer', 'example': 15},
                'total': {'type': 'integer', 'example': 52},
                'from': {'type': 'integer', 'nullable': True, 'example': 1},
                'to': {'type': 'integer', 'nullable': True, 'example': 15},
            },
        }


def paginate(view, queryset, serializer_class):
    """Paginate ``queryset`` for an APIView and return the envelope response."""
    paginator = EnvelopePagination()
    page = paginator.paginate_queryset(queryset, view.request, view=view)
    serializer = serializer_class(page, many=True)
    return paginator.get_paginated_response(serializer.data)
