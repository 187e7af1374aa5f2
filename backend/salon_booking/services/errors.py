# backend/salon_booking/services/errors.py
"""
Booking error taxonomy.

Every error carries an HTTP status and a machine-readable code; the API layer
renders them as {"error": message, "code": code}.
"""


class BookingError(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class ValidationError(BookingError):
    """Malformed client input. Raised before any lock or storage access."""
    status_code = 400
    code = "validation_error"


class SlotConflict(BookingError):
    """Slot already booked or locked by a concurrent request."""
    status_code = 409
    code = "conflict"

    def __init__(self, slot: str, message: str | None = None):
        super().__init__(message or f"Time {slot} is already booked")
        self.slot = slot

    def to_dict(self) -> dict:
        return {**super().to_dict(), "slot": self.slot}


class NotFound(BookingError):
    status_code = 404
    code = "not_found"


class StorageUnavailable(BookingError):
    status_code = 500
    code = "storage_unavailable"


class PartialBookingError(BookingError):
    """Some slot-rows of a multi-slot booking were written, some were not."""
    status_code = 500
    code = "partial_write"

    def __init__(self, message: str, written: list[str], missing: list[str]):
        super().__init__(message)
        self.written = written
        self.missing = missing


class Unauthorized(BookingError):
    status_code = 401
    code = "unauthorized"


class AdminNotConfigured(BookingError):
    status_code = 500
    code = "admin_not_configured"
