import logging
import time

logger = logging.getLogger('requests')


class RequestLoggingMiddleware:
    """Log method, path, status code and duration of every request."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        started = time.monotonic()
        response = self.get_response(request)
        duration_ms = (time.monotonic() - started) * 1000

        user = getattr(request, 'user', None)
        username = user.username if user is not None and user.is_authenticated else 'anonymous'
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s %s %s %.1fms user=%s",
            request.method, request.get_full_path(), response.status_code, duration_ms, username,
        )
        return response
