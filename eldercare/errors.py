"""Error hierarchy for the care request client.

Every error carries a ``code`` and an ``ErrorCategory``. Services facing the
user turn these into outcome objects with a display message; nothing here is
fatal to the process.
"""

from enum import StrEnum


class ErrorCategory(StrEnum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    TRANSPORT = "transport"
    REMOTE = "remote"
    CORRUPTION = "corruption"


class ElderCareError(Exception):
    """Base exception for all client-side failures."""

    def __init__(self, message: str, code: str, category: ErrorCategory):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category


class FormValidationError(ElderCareError):
    """One or more form fields failed local validation. No request was sent."""

    def __init__(self, messages: list[str]):
        super().__init__(
            " ".join(messages), "VALIDATION_ERROR", ErrorCategory.VALIDATION
        )
        self.messages = messages


class SignupConflictError(ElderCareError):
    """The email address is already registered."""

    hint = "If this is your account, please log in instead."

    def __init__(self, detail: str | None = None):
        super().__init__(
            detail or "Email already registered.",
            "EMAIL_ALREADY_REGISTERED",
            ErrorCategory.CONFLICT,
        )


class ServiceUnavailableError(ElderCareError):
    """The backend could not be reached."""

    def __init__(self, message: str):
        super().__init__(message, "SERVICE_UNAVAILABLE", ErrorCategory.TRANSPORT)


class RemoteServiceError(ElderCareError):
    """The backend answered with a non-2xx status or an unusable body."""

    def __init__(self, status_code: int, detail: str | None = None):
        super().__init__(
            detail or f"Backend responded with status {status_code}",
            "REMOTE_ERROR",
            ErrorCategory.REMOTE,
        )
        self.status_code = status_code
        self.detail = detail


class CorruptSessionError(ElderCareError):
    """A persisted session record could not be decoded."""

    def __init__(self, message: str):
        super().__init__(message, "CORRUPT_SESSION", ErrorCategory.CORRUPTION)
