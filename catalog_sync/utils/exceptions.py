"""Custom exception classes for the application."""


class BaseAppException(Exception):
    """Base exception class for all application exceptions."""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class CatalogValidationError(BaseAppException):
    """Raised when import input is malformed. No network I/O has happened yet."""
    pass


class CatalogConnectionError(BaseAppException):
    """Raised when the remote catalog cannot be reached or answers with an error status."""
    pass


class CatalogFormatError(BaseAppException):
    """Raised when the remote catalog answers with an unexpected payload."""
    pass


class ItemImportError(BaseAppException):
    """Raised when a single catalog item cannot be imported."""
    pass


class PersistenceError(ItemImportError):
    """Raised when the product store rejects a read or write."""
    pass


class AssetStorageError(ItemImportError):
    """Raised when an image cannot be downloaded or re-hosted."""
    pass


class ConfigurationError(BaseAppException):
    """Raised when there's a configuration error."""
    pass


class RequestAuthorizationError(BaseAppException):
    """Raised when an import request carries a missing or wrong token."""
    pass
