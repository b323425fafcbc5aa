"""Shared error classes for the generation and publishing pipelines."""

from __future__ import annotations


class StartupDoseError(RuntimeError):
    """Base exception raised by the Startup Dose pipelines."""

    def __init__(self, message: str, code: str = "STARTUP_DOSE_ERROR") -> None:
        super().__init__(message)
        self.code = code


class UpstreamError(StartupDoseError):
    """Raised when a remote service is unreachable, fails, or returns malformed data."""

    def __init__(self, message: str, code: str = "502_UPSTREAM") -> None:
        super().__init__(message, code=code)


class PersistenceError(StartupDoseError):
    """Raised when the company store fails to save or retrieve records."""

    def __init__(self, message: str, code: str = "500_PERSISTENCE") -> None:
        super().__init__(message, code=code)


class CompanyNotFoundError(PersistenceError):
    """Raised when a read finds no company rows."""

    def __init__(self, message: str = "no companies found") -> None:
        super().__init__(message, code="404_COMPANY_NOT_FOUND")


class ConfigurationError(StartupDoseError):
    """Raised when credentials for a capability are missing."""

    def __init__(self, message: str, code: str = "500_NOT_CONFIGURED") -> None:
        super().__init__(message, code=code)


class CancellationError(StartupDoseError):
    """Raised when the caller abandons an in-flight operation."""

    def __init__(self, message: str = "operation cancelled by caller") -> None:
        super().__init__(message, code="499_CANCELLED")
