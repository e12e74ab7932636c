from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    CONFIG = "config"
    VALIDATION = "validation"
    DEPENDENCY = "dependency"
    RESOURCE = "resource"
    ENCODER = "encoder"
    RUNTIME = "runtime"


DEFAULT_EXIT_CODES: dict[ErrorCategory, int] = {
    ErrorCategory.RUNTIME: 1,
    ErrorCategory.CONFIG: 2,
    ErrorCategory.DEPENDENCY: 3,
    ErrorCategory.VALIDATION: 4,
    ErrorCategory.RESOURCE: 5,
    ErrorCategory.ENCODER: 6,
}


@dataclass
class CueCastError(Exception):
    """Base exception for cuecast with standardized categories."""

    message: str
    category: ErrorCategory = ErrorCategory.RUNTIME
    exit_code: int | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)
        if self.exit_code is None:
            self.exit_code = DEFAULT_EXIT_CODES.get(self.category, 1)

    def __str__(self) -> str:
        return self.message

    def label(self) -> str:
        return {
            ErrorCategory.CONFIG: "Configuration error",
            ErrorCategory.VALIDATION: "Input error",
            ErrorCategory.DEPENDENCY: "Dependency error",
            ErrorCategory.RESOURCE: "Resource error",
            ErrorCategory.ENCODER: "Encoder error",
            ErrorCategory.RUNTIME: "Runtime error",
        }.get(self.category, "Error")


class DependencyMissingError(CueCastError):
    """Raised when a required external binary is missing."""

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        super().__init__(
            message,
            category=ErrorCategory.DEPENDENCY,
            exit_code=exit_code,
        )


class ConfigurationError(CueCastError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        super().__init__(
            message,
            category=ErrorCategory.CONFIG,
            exit_code=exit_code,
        )


class InputValidationError(CueCastError):
    """Raised for malformed timelines or render requests, before any layout work."""

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        super().__init__(
            message,
            category=ErrorCategory.VALIDATION,
            exit_code=exit_code,
        )


class ResourceError(CueCastError):
    """Raised when a required asset cannot be fetched or is missing."""

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        super().__init__(
            message,
            category=ErrorCategory.RESOURCE,
            exit_code=exit_code,
        )


class EncoderError(CueCastError):
    """Raised when ffmpeg exits non-zero, times out or produces no output."""

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        exit_code: int | None = None,
    ) -> None:
        super().__init__(
            message,
            category=ErrorCategory.ENCODER,
            exit_code=exit_code,
        )
        self.returncode = returncode


class JobStateError(CueCastError):
    """Raised on an illegal render job transition."""

    def __init__(self, message: str) -> None:
        super().__init__(message, category=ErrorCategory.RUNTIME)
