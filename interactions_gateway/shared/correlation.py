"""Request correlation and logging utilities for Functions Framework handlers."""
import time
from functools import wraps
from typing import Callable

from flask import Request

from .observability import get_correlation_id


def _status_of(result) -> int:
    if isinstance(result, tuple) and len(result) > 1:
        return result[1]
    return getattr(result, 'status_code', 200)


def with_correlation(logger):
    """Decorator to handle correlation ID and request logging.

    Usage:
        @with_correlation(logger)
        def my_handler(request: Request):
            # request.correlation_id is set before the handler runs
            ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(request: Request, *args, **kwargs):
            correlation_id = get_correlation_id(request)

            request.correlation_id = correlation_id
            start_time = time.time()

            forwarded = request.headers.get('X-Forwarded-For', '')
            logger.info(
                "Request started",
                correlation_id=correlation_id,
                method=request.method,
                path=request.path,
                user_agent=request.headers.get('User-Agent', ''),
                remote_addr=forwarded.split(',')[0].strip() if forwarded else ''
            )

            try:
                result = func(request, *args, **kwargs)
            except Exception as e:
                logger.error(
                    "Request failed",
                    error=e,
                    correlation_id=correlation_id,
                    method=request.method,
                    path=request.path,
                    duration_ms=round((time.time() - start_time) * 1000, 2)
                )
                raise

            logger.info(
                "Request completed",
                correlation_id=correlation_id,
                method=request.method,
                path=request.path,
                status_code=_status_of(result),
                duration_ms=round((time.time() - start_time) * 1000, 2)
            )

            if isinstance(result, tuple):
                body, status = result[0], result[1]
                headers = dict(result[2]) if len(result) > 2 and isinstance(result[2], dict) else {}
                headers['X-Correlation-ID'] = correlation_id
                return body, status, headers

            if hasattr(result, 'headers'):
                result.headers['X-Correlation-ID'] = correlation_id
                return result

            return result, 200, {'X-Correlation-ID': correlation_id}

        return wrapper
    return decorator
