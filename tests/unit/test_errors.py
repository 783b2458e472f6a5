"""
Unit tests for error hierarchy.

Tests cover:
- Base TollgateError behavior
- Event, gate and config errors with context
- Storage errors
- Error serialization
"""

import pytest

from tollgate.errors import (
    ERROR_CONFIG_INVALID,
    ERROR_EVENT_PARSE,
    ERROR_GATE_DENIED,
    ERROR_STORAGE_LOCK,
    ERROR_STORAGE_READ,
    ERROR_STORAGE_WRITE,
    ConfigLoadError,
    EventParseError,
    GateDeniedError,
    StorageError,
    StorageLockError,
    StorageReadError,
    StorageWriteError,
    TollgateError,
)


class TestTollgateError:
    """Tests for base TollgateError."""

    def test_basic_error(self) -> None:
        """Create a basic error with message."""
        err = TollgateError(message="Something went wrong", code=9999)
        assert err.message == "Something went wrong"
        assert err.code == 9999
        assert err.suggestion is None
        assert err.context == {}

    def test_str_format(self) -> None:
        """String format includes code and message."""
        err = TollgateError(message="Test error", code=1234)
        assert str(err) == "[E1234] Test error"

    def test_str_with_suggestion(self) -> None:
        err = TollgateError(message="Failed", code=1, suggestion="Try again")
        assert "Suggestion: Try again" in str(err)

    def test_repr_format(self) -> None:
        """Repr includes class name and details."""
        err = TollgateError(message="Test", code=1)
        assert "TollgateError" in repr(err)
        assert "code=1" in repr(err)

    def test_is_exception(self) -> None:
        with pytest.raises(TollgateError):
            raise TollgateError(message="boom", code=1)


class TestEventParseError:
    def test_default_message_and_code(self) -> None:
        err = EventParseError(raw_excerpt="{not json")
        assert err.code == ERROR_EVENT_PARSE
        assert "{not json" in err.message

    def test_long_input_is_truncated_in_message(self) -> None:
        err = EventParseError(raw_excerpt="x" * 500)
        assert "x" * 41 not in err.message


class TestGateDeniedError:
    """A deny described as an error object."""

    def test_fields_in_context(self) -> None:
        err = GateDeniedError(gate="BASH", reason="blocked_command", tool="Bash")
        assert err.code == ERROR_GATE_DENIED
        assert err.context == {"gate": "BASH", "reason": "blocked_command", "tool": "Bash"}
        assert "BASH" in err.message
        assert "blocked_command" in err.message

    def test_without_tool(self) -> None:
        err = GateDeniedError(gate="SUBAGENT", reason="unknown_agent:x")
        assert "event" in err.message


class TestConfigLoadError:
    def test_message_with_path(self) -> None:
        err = ConfigLoadError(path="/tmp/gates.json", underlying_error="bad json")
        assert err.code == ERROR_CONFIG_INVALID
        assert err.message == "Invalid gates config /tmp/gates.json: bad json"

    def test_message_without_path(self) -> None:
        err = ConfigLoadError(underlying_error="bad json")
        assert err.message == "Invalid gates config: bad json"


class TestStorageErrors:
    """Tests for session storage errors."""

    def test_read_error(self) -> None:
        err = StorageReadError(path="/s/session-state.toon", underlying_error="denied")
        assert isinstance(err, StorageError)
        assert err.code == ERROR_STORAGE_READ
        assert err.context["operation"] == "read"
        assert err.context["path"] == "/s/session-state.toon"
        assert err.context["underlying_error"] == "denied"

    def test_write_error_has_suggestion(self) -> None:
        err = StorageWriteError(path="/s", underlying_error="read-only")
        assert err.code == ERROR_STORAGE_WRITE
        assert err.suggestion is not None
        assert "TOLLGATE_STATE_DIR" in err.suggestion

    def test_lock_error(self) -> None:
        err = StorageLockError(timeout_seconds=2.0)
        assert err.code == ERROR_STORAGE_LOCK
        assert err.context["operation"] == "lock"
        assert "2.0s" in err.message


class TestErrorSerialization:
    def test_to_dict(self) -> None:
        err = GateDeniedError(gate="READ", reason="sensitive_file", tool="Read")
        data = err.to_dict()
        assert data["error_type"] == "GateDeniedError"
        assert data["code"] == ERROR_GATE_DENIED
        assert data["context"]["gate"] == "READ"
        assert data["suggestion"] is None
