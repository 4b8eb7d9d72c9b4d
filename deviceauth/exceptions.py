"""Domain exceptions for device authorization and CLI sessions.

Each exception carries a machine-readable error code the CLI and the
browser page branch on, and the HTTP status the exception handlers map
it to. Messages never include codes or session tokens.
"""

from __future__ import annotations


class DeviceAuthException(Exception):
    """Base exception for all device auth errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        status_code: HTTP status used when the error reaches a client.
    """

    status_code: int = 400

    def __init__(self, message: str, error_code: str, status_code: int | None = None) -> None:
        self.message = message
        self.error_code = error_code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.error_code, "detail": self.message}


class DuplicateCodeError(DeviceAuthException):
    """A generated device or user code collided with an existing row. Retry with new codes."""

    status_code = 409

    def __init__(self) -> None:
        super().__init__("Generated code already exists. Please retry.", "DUPLICATE_CODE")


class CodeNotFoundError(DeviceAuthException):
    """No device auth code matches the supplied value."""

    status_code = 404

    def __init__(self) -> None:
        super().__init__("Invalid code.", "INVALID_CODE")


class CodeExpiredError(DeviceAuthException):
    status_code = 400

    def __init__(self) -> None:
        super().__init__("Code expired. Start a new login from the CLI.", "CODE_EXPIRED")


class CodeAlreadyUsedError(DeviceAuthException):
    status_code = 409

    def __init__(self) -> None:
        super().__init__("Code has already been used.", "CODE_ALREADY_USED")


class TooManyRequestsError(DeviceAuthException):
    """Polled again before the advertised interval elapsed."""

    status_code = 429

    def __init__(self, interval: int) -> None:
        super().__init__(f"Polling too fast. Wait {interval} seconds between polls.", "TOO_MANY_REQUESTS")
        self.interval = interval


class SessionNotFoundError(DeviceAuthException):
    """Session does not exist or belongs to another user. Both cases look the same."""

    status_code = 404

    def __init__(self) -> None:
        super().__init__("Session not found.", "SESSION_NOT_FOUND")


class SessionIssueError(DeviceAuthException):
    """The code was claimed but the CLI session could not be stored; the claim was rolled back."""

    status_code = 500

    def __init__(self) -> None:
        super().__init__("Could not create CLI session. Please try again.", "SESSION_ISSUE_FAILED")
