import structlog
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from ..domain.errors import NotFound, PersistenceError, Unauthorized, ValidationError

logger = structlog.get_logger()

STATUS_BY_ERROR = [
    (Unauthorized, status.HTTP_401_UNAUTHORIZED),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (PersistenceError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def exception_handler(exc, context):
    """Map scheduling errors onto ``{"error": ...}`` responses."""
    view = context.get("view")
    view_name = type(view).__name__ if view is not None else None

    for error_cls, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            logger.info("request_failed",
                view=view_name,
                error_type=error_cls.__name__,
                error=str(exc),
                status=status_code,
            )
            return Response({"error": str(exc)}, status=status_code)

    response = drf_exception_handler(exc, context)
    if response is not None:
        return response

    logger.exception("unhandled_error", view=view_name)
    return Response(
        {"error": "Internal server error"},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
