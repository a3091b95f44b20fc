"""
Request logging middleware.
"""
import logging
import time

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware:
    """
    Logs one line per API request: method, path, status, duration and
    whether a bearer token was sent. The token itself is never logged.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if not request.path.startswith('/api/'):
            return self.get_response(request)

        started = time.monotonic()
        response = self.get_response(request)
        elapsed_ms = (time.monotonic() - started) * 1000

        has_token = request.META.get('HTTP_AUTHORIZATION', '').startswith('Bearer ')
        logger.info(
            f"{request.method} {request.path} -> {response.status_code} "
            f"({elapsed_ms:.1f}ms, has_bearer_token={has_token})"
        )
        return response
