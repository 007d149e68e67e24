"""Governance-layer exceptions. Typed, no HTTP."""


class GovernanceError(Exception):
    """Base for all governance-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class RecordNotFoundError(GovernanceError):
    """Raised when a referenced document, version or audit target does not exist."""


class DocumentNotFoundError(RecordNotFoundError):
    """Raised when the live document behind an operation does not exist."""


class VersionNotFoundError(RecordNotFoundError):
    """Raised when a version record does not exist."""


class VersionMismatchError(GovernanceError):
    """Raised when two versions being compared belong to different documents."""


class UnknownDocumentTypeError(GovernanceError):
    """Raised when a document type has no registered store."""


class VersionNumberConflictError(GovernanceError):
    """Raised by storage when (document_id, document_type, version) already exists."""


class RestoreFailedError(GovernanceError):
    """Raised when any step of a restore-to-version fails after the target was loaded."""
