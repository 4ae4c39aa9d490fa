from __future__ import annotations


class BookingError(RuntimeError):
    """Base for every error surfaced by the booking gateways."""

    code: str = "REQUEST_FAILED"
    status_code: int = 400
    retryable: bool = False
    user_message: str = "Request failed"

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message or self.user_message)
        self.message = message or self.user_message
        if status_code is not None:
            self.status_code = status_code


class SlotUnavailableError(BookingError):
    code = "SLOT_UNAVAILABLE"
    status_code = 409
    retryable = True
    user_message = "This time slot is no longer available"


class ProviderUnavailableError(BookingError):
    code = "STYLIST_UNAVAILABLE"
    status_code = 409
    retryable = True
    user_message = "This stylist is not available at this time"


class ServiceNotFoundError(BookingError):
    code = "SERVICE_NOT_FOUND"
    status_code = 404
    user_message = "Service not found"


class CannotCancelError(BookingError):
    code = "CANNOT_CANCEL"
    status_code = 409
    user_message = "This booking cannot be cancelled"


class EscrowNotFoundError(BookingError):
    code = "ESCROW_NOT_FOUND"
    status_code = 404
    user_message = "Escrow transaction not found"


class EscrowMismatchError(BookingError):
    code = "ESCROW_MISMATCH"
    status_code = 409
    user_message = "Escrow amount does not match booking"


class BookingNotFoundError(BookingError):
    code = "BOOKING_NOT_FOUND"
    status_code = 404
    user_message = "Booking not found"


class InvalidTransitionError(BookingError):
    code = "INVALID_STATUS_TRANSITION"
    status_code = 409
    user_message = "This booking cannot move to the requested status"


class RequestFailedError(BookingError):
    """Catch-all for network failures and server errors without a known code."""

    status_code = 500

    def __init__(self, message: str | None = None, status_code: int | None = None, code: str | None = None) -> None:
        super().__init__(message, status_code)
        # No status means the request never got a response.
        self.retryable = status_code is None or status_code >= 500
        if code:
            self.code = code


_ERRORS_BY_CODE: dict[str, type[BookingError]] = {
    cls.code: cls
    for cls in (
        SlotUnavailableError,
        ProviderUnavailableError,
        ServiceNotFoundError,
        CannotCancelError,
        EscrowNotFoundError,
        EscrowMismatchError,
        BookingNotFoundError,
        InvalidTransitionError,
    )
}


def error_from_response(status_code: int, code: str | None, message: str | None) -> BookingError:
    """Map a failed API response onto the error taxonomy."""
    if code and code in _ERRORS_BY_CODE:
        return _ERRORS_BY_CODE[code](message, status_code)

    # Some endpoints only embed the code in the message text.
    for known_code, cls in _ERRORS_BY_CODE.items():
        if message and known_code in message:
            return cls(message, status_code)

    if status_code == 404 and not code:
        return BookingNotFoundError(message, status_code)

    return RequestFailedError(message, status_code, code)
