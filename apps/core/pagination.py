from django.conf import settings
from rest_framework.pagination import PageNumberPagination


class StandardPagination(PageNumberPagination):
    """Default pagination for SVS list endpoints."""
    page_size = settings.SVS_PAGE_SIZE
    page_size_query_param = 'page_size'
    max_page_size = settings.SVS_MAX_PAGE_SIZE
