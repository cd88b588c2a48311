"""Domain exception taxonomy.

Services raise these; the API boundary converts them into structured
``{"success": false, "error": ...}`` payloads (see ``visitor_api.api.errors``).
The message of each exception is user-facing.
"""


class VisitorApiError(Exception):
    """Base class for all expected, per-request failures."""

    code = "BAD_REQUEST"


class InputValidationError(VisitorApiError):
    """Missing or malformed required input. Never reaches the store."""


class NotFoundError(VisitorApiError):
    """An identifier did not resolve to a stored row."""

    code = "NOT_FOUND"


class ConflictError(VisitorApiError):
    """The operation conflicts with the current stored state."""

    code = "CONFLICT"


class AlreadyCheckedOutError(ConflictError):
    """A visitor record is already in the terminal OUT state."""

    def __init__(self, record_id: str) -> None:
        super().__init__("Visitor has already checked out")
        self.record_id = record_id


class TokenExpiredError(ConflictError):
    """A self-checkout QR token is past its expiry."""

    def __init__(self) -> None:
        super().__init__("QR code has expired, please check out at the front desk")


class StorageError(VisitorApiError):
    """The underlying store was unreachable or a query failed."""

    code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str = "Storage error, please try again") -> None:
        super().__init__(message)
