"""Error taxonomy for forum operations."""


class ForumError(Exception):
    """Base class for every failure surfaced to the acting user."""

    error_code = "FORUM_ERROR"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ForumError):
    """A lookup by id or username missed."""

    error_code = "NOT_FOUND"
    status_code = 404


class ForbiddenError(ForumError):
    """A policy forbids the action (protected admin, missing privileges)."""

    error_code = "FORBIDDEN"
    status_code = 403


class ConflictError(ForumError):
    """The action would break referential integrity or uniqueness."""

    error_code = "CONFLICT"
    status_code = 409


class ValidationError(ForumError):
    """Required form fields are missing or blank."""

    error_code = "VALIDATION_ERROR"
    status_code = 422


class SummaryConfigError(ForumError):
    """The summary collaborator is not configured (no API key)."""

    error_code = "SUMMARY_NOT_CONFIGURED"
    status_code = 503


class SummaryError(ForumError):
    """The summary collaborator failed upstream."""

    error_code = "SUMMARY_FAILED"
    status_code = 502
