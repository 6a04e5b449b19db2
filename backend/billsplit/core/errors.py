"""
errors.py: AppError base class and error code registry.

Service code raises these instead of bare exceptions. The API layer renders
any AppError as {"error": {...}} with its http_status. LimitExceededError and
InvariantViolation are never raised out of assignment commands; they are
turned into Notices so the caller can show them and carry on.
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            detail: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.detail      = detail  # optional human-readable detail, e.g. from the OCR provider

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.detail is not None:
            payload["detail"] = self.detail
        return {"error": payload}

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


# ── Error Code Registry ────────────────────────────────────────────────────
#
# These strings are sent to clients, both in error bodies and in notices.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Input Errors (422) ─────────────────────────────────────────────────
    VALIDATION_ERROR           = "VALIDATION_ERROR"

    # ── Receipt processing (502) ───────────────────────────────────────────
    RECEIPT_PROCESSING_FAILED  = "RECEIPT_PROCESSING_FAILED"
    NETWORK_ERROR              = "NETWORK_ERROR"
    SERVICE_ERROR              = "SERVICE_ERROR"
    MALFORMED_RESPONSE         = "MALFORMED_RESPONSE"

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    SESSION_NOT_FOUND          = "SESSION_NOT_FOUND"
    ITEM_NOT_FOUND             = "ITEM_NOT_FOUND"
    PARTICIPANT_NOT_FOUND      = "PARTICIPANT_NOT_FOUND"

    # ── Allocation input (400) ─────────────────────────────────────────────
    ALLOCATION_INPUT           = "ALLOCATION_INPUT"

    # ── Notices (returned alongside a successful response) ─────────────────
    LIMIT_EXCEEDED             = "LIMIT_EXCEEDED"
    ASSIGNMENTS_RESET          = "ASSIGNMENTS_RESET"
    UNITS_REQUIRED             = "UNITS_REQUIRED"
    PORTIONS_ACTIVE            = "PORTIONS_ACTIVE"
    NOT_SHAREABLE              = "NOT_SHAREABLE"
    SHARED_CLEARED             = "SHARED_CLEARED"
    SPLIT_BY_UNITS             = "SPLIT_BY_UNITS"


class ValidationError(AppError):
    """Bad or missing item fields, from OCR output or manual entry."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(ErrorCode.VALIDATION_ERROR, message, 422, detail)


class ReceiptProcessingError(AppError):
    """Any failure of the OCR collaborator. All subclasses share one status."""

    def __init__(self, code: str, message: str, detail: str | None = None) -> None:
        super().__init__(code, message, 502, detail)


class NetworkError(ReceiptProcessingError):

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(
            ErrorCode.NETWORK_ERROR,
            "Could not reach the receipt reader. Check your connection and try again.",
            detail,
        )


class ServiceError(ReceiptProcessingError):

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(
            ErrorCode.SERVICE_ERROR,
            "The receipt reader failed to process the image.",
            detail,
        )


class MalformedResponseError(ReceiptProcessingError):

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(
            ErrorCode.MALFORMED_RESPONSE,
            "The receipt reader returned an unexpected response.",
            detail,
        )


class LimitExceededError(AppError):

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.LIMIT_EXCEEDED, message, 409)


class InvariantViolation(AppError):

    def __init__(self, message: str, code: str = ErrorCode.ASSIGNMENTS_RESET) -> None:
        super().__init__(code, message, 409)


class SessionNotFoundError(AppError):

    def __init__(self, session_id) -> None:
        super().__init__(ErrorCode.SESSION_NOT_FOUND, f"Session {session_id} not found", 404)


class ItemNotFoundError(AppError):

    def __init__(self, index: int) -> None:
        super().__init__(ErrorCode.ITEM_NOT_FOUND, f"Item {index} not found", 404)


class ParticipantNotFoundError(AppError):

    def __init__(self, participant_id: str) -> None:
        super().__init__(ErrorCode.PARTICIPANT_NOT_FOUND, f"Participant {participant_id} not found", 404)


class AllocationInputError(AppError):
    """The caller passed assignments that do not match its items or participants."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.ALLOCATION_INPUT, message, 400)
