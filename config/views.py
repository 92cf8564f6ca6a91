from django.db import connection
from django.db.utils import OperationalError
from django.http import JsonResponse
from django.utils import timezone

from apps.core.exception_handler import INTERNAL_ERROR_CODE, INTERNAL_ERROR_MESSAGE, error_body


def health_check(request):
    """Liveness check; reports whether the database answers."""
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
        database = 'ok'
    except OperationalError:
        database = 'unavailable'

    status_code = 200 if database == 'ok' else 503
    return JsonResponse({
        'status': 'ok' if status_code == 200 else 'degraded',
        'database': database,
        'timestamp': timezone.now().isoformat(),
    }, status=status_code)


def error_404(request, exception):
    """Custom 404 handler."""
    return JsonResponse(error_body(
        request,
        status_code=404,
        code='resource_not_found',
        message='Not found.',
    ), status=404)


def error_500(request):
    """Custom 500 handler."""
    return JsonResponse(error_body(
        request,
        status_code=500,
        code=INTERNAL_ERROR_CODE,
        message=INTERNAL_ERROR_MESSAGE,
    ), status=500)
