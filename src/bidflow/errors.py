"""Domain error hierarchy.

Every error carries a machine-readable ``kind`` and the HTTP status the API
layer answers with. Routes never build error payloads themselves; the
exception handlers installed by :func:`bidflow.app.create_app` do.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for all errors surfaced to API callers."""

    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__doc__ or self.kind)
        self.message = message or (self.__class__.__doc__ or self.kind).strip()

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class InputValidationError(DomainError):
    """Malformed or missing request fields."""

    kind = "validation_error"
    status_code = 400


class AuthenticationError(DomainError):
    """Missing or invalid credentials."""

    kind = "auth_error"
    status_code = 401


class AuthorizationError(DomainError):
    """The caller's role or ownership does not allow this operation."""

    kind = "authorization_error"
    status_code = 403


class NotFoundError(DomainError):
    """The requested resource does not exist."""

    kind = "not_found"
    status_code = 404


class DocumentNotFound(NotFoundError):
    """Document not found."""

    kind = "document_not_found"


class VersionNotFound(NotFoundError):
    """Version not found."""

    kind = "version_not_found"


class SectionNotFound(NotFoundError):
    """Section not present in the latest version."""

    kind = "section_not_found"


class NotificationNotFound(NotFoundError):
    """Notification not found."""

    kind = "notification_not_found"


class ArtifactNotFound(NotFoundError):
    """Artifact not found in the document store."""

    kind = "artifact_not_found"


class GenerationError(DomainError):
    """The text-generation provider failed."""

    kind = "generation_error"
    status_code = 502


class GenerationFormatError(GenerationError):
    """The text-generation provider returned an unusable response."""

    kind = "generation_format_error"


class GenerationTimeout(GenerationError):
    """The text-generation provider did not answer in time."""

    kind = "generation_timeout"
    status_code = 504


class StorageError(DomainError):
    """The document store failed."""

    kind = "storage_error"
    status_code = 500


class StorageWriteError(StorageError):
    """Writing to the document store failed."""

    kind = "storage_write_error"


class StorageTimeout(StorageError):
    """The document store did not answer in time."""

    kind = "storage_timeout"
    status_code = 504


class ArtifactExists(StorageError):
    """An artifact with this name already exists."""

    kind = "artifact_exists"
    status_code = 409


class VersionConflict(DomainError):
    """A concurrent writer changed the document first; retry against the latest state."""

    kind = "version_conflict"
    status_code = 409


class StateTransitionError(DomainError):
    """The requested transition is not allowed from the current state."""

    kind = "invalid_state"
    status_code = 400


class InvalidTransition(StateTransitionError):
    """The requested transition is not allowed from the current state."""

    kind = "invalid_transition"


class DuplicateReview(StateTransitionError):
    """The reviewer already reviewed this round."""

    kind = "duplicate_review"


class AlreadyFinalized(StateTransitionError):
    """The approval is already approved or rejected."""

    kind = "already_finalized"
