"""
Custom exception hierarchy for MdTex.

Provides structured error types for better error handling and debugging.
All exceptions inherit from MdTexError for easy catching.
"""


class MdTexError(Exception):
    """
    Base exception for all MdTex errors.
    All custom exceptions should inherit from this class.
    """

    def __init__(self, message: str, context: dict | None = None):
        """
        Initialize MdTex error.
        Args:
            message: Error message
            context: Optional context dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ValidationError(MdTexError):
    """
    Validation errors.
    Raised when input validation fails or data is invalid.
    """

    pass


class NotFoundError(MdTexError):
    """
    Resource not found errors.
    Raised when a requested note, profile or file doesn't exist.
    """

    pass


class DocumentReadError(MdTexError):
    """
    Content graph read errors.
    Raised when a resolved document cannot be read.
    """

    pass


class ConfigurationError(MdTexError):
    """
    Configuration errors.
    Raised when configuration is invalid or missing required values.
    """

    pass


class ProcessError(MdTexError):
    """
    Base exception for external process execution.
    """

    pass


class ProcessLaunchError(ProcessError):
    """
    External process could not be started.
    Raised when the binary is missing or not executable.
    """

    pass


class LintError(MdTexError):
    """
    Lint-fix hook errors.
    Raised when markdownlint cannot be located or fails to run.
    """

    pass
