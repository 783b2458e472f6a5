"""
Exception hierarchy for Tollgate.

All Tollgate exceptions inherit from TollgateError, allowing callers to catch
all Tollgate-specific exceptions with a single except clause.

Exception Categories:
    - EventParseError: Hook event on stdin could not be parsed
    - GateDeniedError: A gate denied the event (descriptive, not control flow)
    - ConfigLoadError: Gate configuration file missing or invalid
    - StorageError: Session state could not be read, written or locked

Design Principles:
    - All errors have error codes for programmatic handling
    - All errors include context (gate, path, event where applicable)
    - None of these errors may escape a hook dispatch: the dispatcher degrades
      to a silent allow instead of crashing
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Input errors: 1xxx
ERROR_EVENT_PARSE = 1001

# Gate errors: 2xxx
ERROR_GATE_DENIED = 2001

# Config errors: 3xxx
ERROR_CONFIG_INVALID = 3001
ERROR_CONFIG_UNREADABLE = 3002

# Storage errors: 5xxx
ERROR_STORAGE_READ = 5001
ERROR_STORAGE_WRITE = 5002
ERROR_STORAGE_LOCK = 5003


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class TollgateError(Exception):
    """
    Base exception for all Tollgate errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Input Errors
# =============================================================================


@dataclass
class EventParseError(TollgateError):
    """
    Raised when the hook event on stdin is not a JSON object.

    The dispatcher never lets this escape: a malformed event is replaced by
    an empty default event so that a verdict is still produced.
    """

    raw_excerpt: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Could not parse hook event: {self.raw_excerpt[:40]!r}"
        if self.code == 0:
            self.code = ERROR_EVENT_PARSE
        self.context["raw_excerpt"] = self.raw_excerpt[:200]


# =============================================================================
# Gate Errors
# =============================================================================


@dataclass
class GateDeniedError(TollgateError):
    """
    Describes a deny verdict as an error object.

    Gates return verdicts, they do not raise. This type exists so that
    diagnostics (doctor, CLI summaries) can render a deny the same way as
    any other error.

    Attributes:
        gate: Name of the gate that denied (e.g., "BASH", "TABULA_RASA")
        reason: Machine-readable reason string
        tool: Tool name of the denied event, if any
    """

    gate: str = ""
    reason: str = ""
    tool: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Gate {self.gate} denied {self.tool or 'event'}: {self.reason}"
        if self.code == 0:
            self.code = ERROR_GATE_DENIED
        self.context.update({
            "gate": self.gate,
            "reason": self.reason,
            "tool": self.tool,
        })


# =============================================================================
# Config Errors
# =============================================================================


@dataclass
class ConfigLoadError(TollgateError):
    """Raised when the gates config file cannot be read or validated."""

    path: str = ""
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            where = f" {self.path}" if self.path else ""
            self.message = f"Invalid gates config{where}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_CONFIG_INVALID
        if not self.suggestion:
            self.suggestion = "Fix the file or delete it to use the built-in defaults"
        self.context.update({
            "path": self.path,
            "underlying_error": self.underlying_error,
        })


# =============================================================================
# Storage Errors
# =============================================================================


@dataclass
class StorageError(TollgateError):
    """
    Base class for session state storage errors.

    Attributes:
        operation: The operation that failed (e.g., "read", "write", "lock")
        path: The state file involved
    """

    operation: str = ""
    path: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context.update({
            "operation": self.operation,
            "path": self.path,
        })


@dataclass
class StorageReadError(StorageError):
    """Raised when the session state file exists but cannot be read."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.operation:
            self.operation = "read"
        if not self.message:
            self.message = f"Session state read failed: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_STORAGE_READ
        super().__post_init__()
        self.context["underlying_error"] = self.underlying_error


@dataclass
class StorageWriteError(StorageError):
    """Raised when the session state file cannot be written or replaced."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.operation:
            self.operation = "write"
        if not self.message:
            self.message = f"Session state write failed: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_STORAGE_WRITE
        if not self.suggestion:
            self.suggestion = "Check that the state directory is writable (TOLLGATE_STATE_DIR)"
        super().__post_init__()
        self.context["underlying_error"] = self.underlying_error


@dataclass
class StorageLockError(StorageError):
    """Raised when the session lock cannot be acquired in time."""

    timeout_seconds: float = 0.0

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.operation:
            self.operation = "lock"
        if not self.message:
            self.message = f"Session lock not acquired within {self.timeout_seconds}s"
        if self.code == 0:
            self.code = ERROR_STORAGE_LOCK
        super().__post_init__()
        self.context["timeout_seconds"] = self.timeout_seconds
