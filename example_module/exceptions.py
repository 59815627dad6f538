"""
Custom Exception Classes for the Example Module

Persistence code logs and degrades instead of raising; these exceptions are
used for control flow inside install/uninstall and by the web layer, which
maps them to HTTP responses in example_module.exception_handlers.
"""

from typing import Any

from fastapi import status


class ExampleModuleError(Exception):
    """Base exception class for all module errors"""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# ============================================================================
# Lifecycle Exceptions
# ============================================================================


class InstallationError(ExampleModuleError):
    """Raised when a fatal installation step fails"""

    def __init__(self, message: str, step: str | None = None):
        details = {"step": step} if step else {}
        super().__init__(message=message, details=details)


class UninstallError(ExampleModuleError):
    """Raised when a fatal uninstall step fails"""

    def __init__(self, message: str, step: str | None = None):
        details = {"step": step} if step else {}
        super().__init__(message=message, details=details)


class BackupError(UninstallError):
    """Raised when the pre-uninstall snapshot cannot be created"""

    def __init__(self, message: str = "Failed to create backup - uninstall aborted"):
        super().__init__(message=message, step="backup")


# ============================================================================
# Request Exceptions
# ============================================================================


class ModuleDisabledError(ExampleModuleError):
    """Raised when a route is hit while the module is disabled"""

    def __init__(self, message: str = "Example Module is disabled"):
        super().__init__(message=message, status_code=status.HTTP_404_NOT_FOUND)


class SubmissionError(ExampleModuleError):
    """Raised when a public form submission is rejected outright"""

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(message=message, status_code=status_code)


class CSRFError(SubmissionError):
    """Raised when CSRF validation fails"""

    def __init__(self, message: str = "CSRF validation failed"):
        super().__init__(message=message, status_code=status.HTTP_403_FORBIDDEN)


class RateLimitExceededError(SubmissionError):
    """Raised when a client exceeds the submission rate limit"""

    def __init__(self, message: str = "Rate limit exceeded. Please try again later."):
        super().__init__(message=message, status_code=status.HTTP_429_TOO_MANY_REQUESTS)
