"""tracefilter error hierarchy and exceptions."""

from __future__ import annotations


class TraceFilterError(Exception):
    """Base exception for all tracefilter errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigError(TraceFilterError):
    """Raised when configuration is invalid or conflicting."""
    pass


class PropagationError(TraceFilterError, ValueError):
    """Base for trace context extract/inject failures."""
    pass


class EmptyContextError(PropagationError):
    """Raised when a context carries neither identifiers nor a sampling decision."""

    def __init__(self, message: str = "empty trace context", details: dict = None):
        super().__init__(message, details)


class InvalidTraceContextError(PropagationError):
    """Raised when B3 header content is malformed."""
    pass


class MissingTargetHeadersError(PropagationError):
    """Raised when inject is called without a header map to write into."""

    def __init__(self, message: str = "missing target header map", details: dict = None):
        super().__init__(message, details)
