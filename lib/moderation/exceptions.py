"""
Moderation library exceptions

This module defines the exception hierarchy for the moderation library.
All moderation-related errors inherit from ModerationError base class.
"""


class ModerationError(Exception):
    """
    Base exception for all moderation library errors.

    Catch this to handle any moderation error generically.
    """

    pass


class ModelStoreError(ModerationError):
    """
    Exception raised when the classifier model cannot be saved or restored.

    This exception wraps:
    - File system I/O errors of a store backend
    - Malformed or truncated model blobs
    - Blobs missing required fields

    Args:
        message: Description of the store error
        originalError: The original exception that caused this error (optional)
    """

    def __init__(self, message: str, originalError: Exception | None = None):
        super().__init__(message)
        self.originalError = originalError


class ModelLoadError(ModerationError):
    """Raised by neural model loaders when the model cannot be made ready."""

    pass


class LoadCancelledError(ModerationError):
    """Raised inside a loader when a cooperative cancellation was requested."""

    pass


class TrainingDataError(ModerationError):
    """
    Exception raised when a training corpus has an unusable structure.

    Individual bad items are skipped, this is raised only when the whole
    document cannot be interpreted (wrong top-level type, unreadable file).
    """

    pass


class ModerationConfigError(ModerationError):
    """
    Exception raised when moderation configuration is invalid.

    This exception is raised during service construction when:
    - Store type is not recognized
    - Neural candidate labels are inconsistent
    - Thresholds are out of range
    """

    pass
