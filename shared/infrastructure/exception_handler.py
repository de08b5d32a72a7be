"""DRF exception handler translating domain errors into HTTP responses."""

from __future__ import annotations

import structlog
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from shared.domain.errors import (
    DomainError,
    ErrorKind,
    InternalError,
    PaymentGatewayError,
)

logger = structlog.get_logger(__name__)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(exc: DomainError) -> int:
    if isinstance(exc, PaymentGatewayError):
        return status.HTTP_502_BAD_GATEWAY
    return STATUS_BY_KIND.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)


def domain_exception_handler(exc, context):
    """
    Map ``DomainError`` subclasses onto ``{"status", "code", "message"}``
    bodies. DRF's own exceptions keep their default rendering; anything
    else is logged in full and reported as a generic internal error.
    """
    view = context.get("view")
    view_name = view.__class__.__name__ if view is not None else None

    if isinstance(exc, DomainError):
        http_status = status_for(exc)
        if http_status >= 500:
            logger.error(
                "domain_error",
                code=exc.code,
                error=str(exc),
                view=view_name,
                **exc.context,
            )
        return Response(exc.to_dict(), status=http_status)

    response = drf_exception_handler(exc, context)
    if response is not None:
        return response

    logger.exception("unhandled_exception", view=view_name, error=str(exc))
    return Response(InternalError().to_dict(), status=status.HTTP_500_INTERNAL_SERVER_ERROR)
