"""Custom exceptions for TreeLingo."""


class TreeLingoException(Exception):
    """Base exception for all TreeLingo errors."""

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


class NetworkError(TreeLingoException):
    """Network-related errors (retryable)."""

    def __init__(self, message: str):
        super().__init__(message, exit_code=1)


class ValidationError(TreeLingoException):
    """Invalid input such as an empty document or a missing language."""

    def __init__(self, message: str):
        super().__init__(message, exit_code=2)


class ConfigurationError(TreeLingoException):
    """Missing credentials or unusable settings."""

    def __init__(self, message: str):
        super().__init__(message, exit_code=2)


class APIError(TreeLingoException):
    """External API errors (translation provider or document store)."""

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message, exit_code=exit_code)


class TranslationError(TreeLingoException):
    """A provider call failed or returned an unusable result."""

    def __init__(self, message: str):
        super().__init__(message, exit_code=1)


class DocumentNotFoundError(TreeLingoException):
    """A document id could not be resolved in the document store."""

    def __init__(self, doc_id: str):
        super().__init__(f"Document not found: {doc_id}", exit_code=2)
        self.doc_id = doc_id
