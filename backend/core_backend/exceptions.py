"""
Error taxonomy for the order engine and its REST exception handler.

Business-rule rejections carry a message naming the violated rule so it can
be shown to the operator verbatim. Transport failures are reported with a
generic, retry-safe message instead.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)

GENERIC_RETRY_MESSAGE = "Could not reach the server. Please try again."


class OrderEngineError(Exception):
    """Base exception for order engine errors."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(OrderEngineError):
    """Raised for malformed numeric or shape input, before any mutation."""
    pass


class AuthorizationError(OrderEngineError):
    """Raised when the caller's role does not allow the operation."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(OrderEngineError):
    """Raised when a tab, table or session does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(OrderEngineError):
    """Raised when a write would duplicate a uniquely named resource (tab names)."""

    status_code = status.HTTP_409_CONFLICT


class TransientPersistenceError(OrderEngineError):
    """Raised when the database could not be reached or timed out."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message=GENERIC_RETRY_MESSAGE, details=None):
        super().__init__(message, details)


class ConsistencyWarning(UserWarning):
    """
    Catalog data-quality problem (malformed or dangling stock reference).
    Logged, never raised across a settlement.
    """
    pass


def order_engine_exception_handler(exc, context):
    """
    Maps OrderEngineError subclasses to HTTP responses and defers everything
    else to the DRF default handler.
    """
    if isinstance(exc, OrderEngineError):
        request = context.get("request")
        if isinstance(exc, TransientPersistenceError):
            logger.error(
                f"Transient persistence failure on {getattr(request, 'path', '?')}: {exc.details}"
            )
            body = {"error": GENERIC_RETRY_MESSAGE}
        else:
            logger.info(f"{exc.__class__.__name__}: {exc.message}")
            body = {"error": exc.message}
            if exc.details:
                body["details"] = exc.details
        return Response(body, status=exc.status_code)

    return exception_handler(exc, context)
