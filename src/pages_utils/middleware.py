"""
Cross-cutting wrappers for Lambda handlers.

A middleware takes a handler ``(event, context) -> dict`` and returns a new
handler. ``wrap`` applies them in order, so the last one listed is the
outermost layer:

    lambda_handler = wrap(main, with_status, with_logging)
"""

import functools
import time
from typing import Any, Callable, Dict, Optional

from pages_utils.logger import get_logger
from pages_utils.models import NO_STORE
from pages_utils.status import STATUS_PATH, status_response

Handler = Callable[[Dict[str, Any], Any], Dict[str, Any]]
Middleware = Callable[[Handler], Handler]

logger = get_logger("middleware")


def wrap(handler: Handler, *middlewares: Middleware) -> Handler:
    for middleware in middlewares:
        handler = middleware(handler)
    return handler


def event_path(event: Dict[str, Any]) -> Optional[str]:
    """Request path for HTTP API (v2), REST API (v1) and OpenWhisk events."""
    return (
        event.get("rawPath")
        or event.get("path")
        or event.get("__ow_path")
    )


def with_logging(handler: Handler) -> Handler:
    @functools.wraps(handler)
    def wrapped(event, context):
        request_id = getattr(context, "aws_request_id", None)
        path = event_path(event)
        started = time.monotonic()

        logger.info(
            "request.start",
            extra={"request_id": request_id, "path": path},
        )

        try:
            resp = handler(event, context)
        except Exception:
            logger.exception(
                "request.unhandled_error",
                extra={"request_id": request_id, "path": path},
            )
            return {
                "statusCode": 500,
                "headers": {"Cache-Control": NO_STORE},
                "body": "internal server error",
            }

        logger.info(
            "request.finish",
            extra={
                "request_id": request_id,
                "status_code": resp.get("statusCode"),
                "duration_ms": round((time.monotonic() - started) * 1000, 2),
            },
        )
        return resp

    return wrapped


def with_status(handler: Handler) -> Handler:
    @functools.wraps(handler)
    def wrapped(event, context):
        path = event_path(event) or ""
        if path.endswith(STATUS_PATH):
            return status_response()
        return handler(event, context)

    return wrapped
