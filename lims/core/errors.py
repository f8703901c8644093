# =========================================================
# INVENTORY ERROR TAXONOMY
#
# Raised by the stock ledger and turned into JSON responses
# by the handler registered in lims.main. Every error carries
# the HTTP status it maps to and a short message for the UI.
# =========================================================

from fastapi import status


class InventoryError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict:
        return {"detail": self.message}


class ValidationError(InventoryError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(InventoryError):
    status_code = status.HTTP_404_NOT_FOUND


class ComponentNotFound(NotFound):
    def __init__(self, component_id):
        super().__init__("Component not found")
        self.component_id = component_id


class Conflict(InventoryError):
    status_code = status.HTTP_409_CONFLICT


class InsufficientStock(InventoryError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, available: int, requested: int):
        super().__init__(
            f"Insufficient stock. Available: {available}, Requested: {requested}"
        )
        self.available = available
        self.requested = requested

    def to_payload(self) -> dict:
        return {
            "detail": self.message,
            "available": self.available,
            "requested": self.requested,
        }


class StorageFailure(InventoryError):
    """Backing store unreachable or a write failed. Safe for the caller to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
