"""Exceptions raised by the knowledge-base assistant."""


class EmptyQuestionError(ValueError):
    """Raised when a question is missing or blank."""


class CompletionError(RuntimeError):
    """Raised when the remote completion service call fails."""


class DocumentNotFoundError(LookupError):
    """Raised when a document does not exist or belongs to another user."""
