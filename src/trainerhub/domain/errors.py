"""
Domain errors.

Every rejection in the negotiation and matching layers is raised as a subclass of
`TrainerHubError`. Each class carries a stable machine-readable `code` and the
HTTP status the API layer answers with; the message is the human-readable reason.
"""

from __future__ import annotations


class TrainerHubError(Exception):
    code = "ERROR"
    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def as_detail(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class NotFoundError(TrainerHubError):
    code = "NOT_FOUND"
    http_status = 404


class AuthorizationError(TrainerHubError):
    code = "UNAUTHORIZED_PARTY"
    http_status = 403


class ValidationError(TrainerHubError):
    code = "VALIDATION_ERROR"
    http_status = 400


class InvalidTransitionError(TrainerHubError):
    code = "INVALID_STATE_TRANSITION"
    http_status = 409


class AlreadyAcceptedError(InvalidTransitionError):
    code = "ALREADY_ACCEPTED"


class LockedError(InvalidTransitionError):
    code = "LOCKED"


class NotPendingError(InvalidTransitionError):
    code = "MUST_BE_PENDING"


class ConflictError(TrainerHubError):
    """The request row was changed by someone else between read and write."""

    code = "CONFLICT"
    http_status = 409
