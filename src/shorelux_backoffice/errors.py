from typing import Any, Optional


class BackOfficeError(Exception):
    """Base class for every error the back-office client reports to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PreconditionError(BackOfficeError):
    """The record is outside the editable window; nothing was sent."""


class AuthenticationError(BackOfficeError):
    """No access token available; the call was never attempted."""


class TransportError(BackOfficeError):
    """Network failure or a response that is not JSON."""


class ServerRejection(BackOfficeError):
    """The API answered 4xx/5xx with a JSON error payload."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class VerificationFailure(BackOfficeError):
    """verify-otp answered 2xx but did not confirm the code."""


class FormValidationError(BackOfficeError):
    """A client-side form rule failed; nothing was sent."""


class WorkflowStateError(BackOfficeError):
    """Operation not allowed in the current edit state."""


def extract_error_message(payload: Any, status_code: Optional[int] = None) -> str:
    """Pick the user-facing message out of an API error payload.

    The API is inconsistent about where it puts the message, so look at
    ``error``, then ``detail``, then ``non_field_errors[0]``.
    """
    if isinstance(payload, dict):
        for key in ("error", "detail"):
            value = payload.get(key)
            if value:
                return str(value)
        non_field = payload.get("non_field_errors")
        if isinstance(non_field, list) and non_field:
            return str(non_field[0])
    return f"HTTP {status_code}" if status_code is not None else "Unknown error"
