"""
Freight error taxonomy.

Every error carries the entity id and the operation it came from so callers
can log or display it without re-deriving context. The DRF handler at the
bottom renders them as JSON with a stable error code.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger("freightdesk.api")


class FreightError(Exception):
    """Base class for freight core errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code  = "FREIGHT_ERROR"

    def __init__(self, message, *, entity_id=None, operation=None):
        self.message   = message
        self.entity_id = str(entity_id) if entity_id is not None else None
        self.operation = operation
        super().__init__(message)

    def as_dict(self):
        return {
            "error":     self.error_code,
            "detail":    self.message,
            "entity_id": self.entity_id,
            "operation": self.operation,
        }


class ValidationError(FreightError):
    """Missing or invalid input. Never retried automatically."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code  = "VALIDATION_ERROR"

    def __init__(self, message, *, fields=None, **kwargs):
        self.fields = fields or {}
        super().__init__(message, **kwargs)

    def as_dict(self):
        data = super().as_dict()
        if self.fields:
            data["fields"] = self.fields
        return data


class InvalidTransitionError(FreightError):
    """Requested status change is not allowed from the current status."""

    status_code = status.HTTP_409_CONFLICT
    error_code  = "INVALID_TRANSITION"


class ShipmentFinalizedError(InvalidTransitionError):
    """Mutation attempted on a delivered or cancelled shipment."""

    error_code = "SHIPMENT_FINALIZED"


class NotFoundError(FreightError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code  = "NOT_FOUND"


class PersistenceError(FreightError):
    """A store collaborator failed; the operation's effects were not applied."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code  = "PERSISTENCE_ERROR"


def freight_exception_handler(exc, context):
    """DRF exception handler: freight errors first, DRF defaults for the rest."""
    if isinstance(exc, FreightError):
        if isinstance(exc, PersistenceError):
            logger.error("%s failed for %s: %s", exc.operation, exc.entity_id, exc.message)
        return Response(exc.as_dict(), status=exc.status_code)
    return exception_handler(exc, context)
