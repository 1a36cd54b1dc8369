import logging
from datetime import datetime

from django.db import DatabaseError, connection
from django.http import HttpRequest, JsonResponse

logger = logging.getLogger(__name__)


def health_check(request: HttpRequest) -> JsonResponse:
    """
    Health check endpoint for monitoring and load balancers.

    Verifies database connectivity and returns JSON with status.

    Returns:
        JsonResponse with status 200 if healthy, 500 if unhealthy
    """
    try:
        connection.ensure_connection()
    except DatabaseError as e:
        logger.exception("Health check could not reach the database")
        return JsonResponse({
            'status': 'unhealthy',
            'error': str(e),
            'timestamp': datetime.now().isoformat()
        }, status=500)
    return JsonResponse({
        'status': 'healthy',
        'database': 'connected',
        'timestamp': datetime.now().isoformat()
    })
