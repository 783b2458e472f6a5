"""
Schema definitions for Tollgate.

This module defines the Pydantic models used throughout Tollgate:
- HookEvent: One incoming hook event (what the host sends on stdin)
- Verdict: The single decision produced for an event
- GatesConfig and its sections: Optional on-disk policy overrides

Design Decisions:
    - Events and verdicts are immutable (frozen=True)
    - Events accept both snake_case and camelCase keys, and ignore unknown keys
    - Config models ignore unknown keys so an older binary can read a newer
      config file; defaults are the security-conservative built-in tables
"""

import json
import os
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from loguru import logger
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from tollgate.errors import ERROR_CONFIG_UNREADABLE, ConfigLoadError, EventParseError


# =============================================================================
# Enums
# =============================================================================


class EventCategory(str, Enum):
    """Which gate chain an event belongs to."""

    PROMPT_SUBMIT = "prompt-submit"
    PRE_TOOL = "pre-tool"
    POST_TOOL = "post-tool"
    PRE_WRITE = "pre-write"
    POST_WRITE = "post-write"
    SUBAGENT_INVOKE = "subagent-invoke"
    SESSION_LIFECYCLE = "session-lifecycle"


class VerdictKind(str, Enum):
    """The three possible outcomes of a dispatch."""

    SILENT = "silent"
    CONTEXT = "context"
    DENY = "deny"


# Tools whose pre/post events go to the write chains
WRITE_TOOLS = frozenset({"Write", "Edit", "MultiEdit", "NotebookEdit"})


# =============================================================================
# Event Model
# =============================================================================


class HookEvent(BaseModel):
    """
    A single hook event as delivered by the agent host.

    Attributes:
        category: Resolved chain category (set by the dispatcher)
        tool_name: Tool being invoked (e.g., "Bash", "Edit"); may be empty
        tool_input: Tool-specific fields (command, file_path, subagent_type, ...)
        prompt: Raw user prompt for prompt-submit events
        session_id: Host session identifier (informational only)
        hook_event_name: Host event name (e.g., "PreToolUse")
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    category: EventCategory | None = Field(
        default=None,
        description="Resolved chain category",
    )
    tool_name: str = Field(
        default="",
        validation_alias=AliasChoices("tool_name", "toolName"),
        description="Tool being invoked",
    )
    tool_input: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("tool_input", "toolInput"),
        description="Tool-specific fields",
    )
    prompt: str = Field(default="", description="Raw user prompt")
    session_id: str = Field(
        default="",
        validation_alias=AliasChoices("session_id", "sessionId"),
        description="Host session identifier",
    )
    hook_event_name: str = Field(
        default="",
        validation_alias=AliasChoices("hook_event_name", "hookEventName"),
        description="Host event name",
    )

    @field_validator("tool_input", mode="before")
    @classmethod
    def coerce_tool_input(cls, v: Any) -> dict[str, Any]:
        """Anything that is not a mapping carries no fields."""
        return v if isinstance(v, dict) else {}

    @field_validator("tool_name", "prompt", "session_id", "hook_event_name", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        """Null or non-string scalars become empty strings."""
        return v if isinstance(v, str) else ""

    def get_string(self, key: str) -> str:
        """Return a tool_input field as a string, or "" if absent or not a string."""
        value = self.tool_input.get(key)
        return value if isinstance(value, str) else ""

    def get_prompt(self) -> str:
        """Return the prompt, falling back to tool_input.prompt."""
        return self.prompt or self.get_string("prompt")

    def get_file_path(self) -> str:
        """Target path of a file tool (notebooks use notebook_path)."""
        return self.get_string("file_path") or self.get_string("notebook_path")

    def get_edit_pairs(self) -> list[tuple[str, str]]:
        """(old_string, new_string) pairs of an Edit or MultiEdit."""
        if self.tool_name == "MultiEdit":
            edits = self.tool_input.get("edits")
            if not isinstance(edits, list):
                return []
            pairs = []
            for e in edits:
                if not isinstance(e, dict):
                    continue
                old, new = e.get("old_string"), e.get("new_string")
                pairs.append((
                    old if isinstance(old, str) else "",
                    new if isinstance(new, str) else "",
                ))
            return pairs
        return [(self.get_string("old_string"), self.get_string("new_string"))]

    def get_write_content(self) -> str:
        """Return the text a write tool is about to put on disk."""
        if self.tool_name == "Edit":
            return self.get_string("new_string")
        if self.tool_name == "NotebookEdit":
            return self.get_string("new_source")
        if self.tool_name == "MultiEdit":
            edits = self.tool_input.get("edits")
            if isinstance(edits, list):
                return "\n".join(
                    e.get("new_string", "") for e in edits
                    if isinstance(e, dict) and isinstance(e.get("new_string"), str)
                )
        return self.get_string("content")

    def with_category(self, category: EventCategory) -> "HookEvent":
        """Return a copy bound to a chain category."""
        return self.model_copy(update={"category": category})


def parse_event(raw: str) -> HookEvent:
    """
    Parse a hook event from raw stdin text.

    Args:
        raw: The JSON text the host wrote to stdin

    Returns:
        Validated HookEvent (empty input gives an empty event)

    Raises:
        EventParseError: If the text is not a JSON object
    """
    if not raw.strip():
        return HookEvent()
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise EventParseError(raw_excerpt=raw, context={"error": str(e)}) from e
    if not isinstance(data, dict):
        raise EventParseError(raw_excerpt=raw, context={"error": "not an object"})
    try:
        return HookEvent.model_validate(data)
    except ValidationError as e:
        raise EventParseError(raw_excerpt=raw, context={"error": str(e)}) from e


# =============================================================================
# Verdict Model
# =============================================================================


class Verdict(BaseModel):
    """
    The decision produced for one event.

    Exactly one verdict is produced per dispatch. Gates return a Verdict to
    stop the chain, or None to let the next gate run.

    Attributes:
        kind: silent, context or deny
        gate: Name of the gate that decided (empty for a plain silent allow)
        reason: Machine-readable deny reason
        items: Ordered key/value lines for a context block
        text: Preformatted context text (used instead of items when set)
        note: Diagnostic note for degraded silent verdicts
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: VerdictKind = Field(..., description="Outcome kind")
    gate: str = Field(default="", description="Deciding gate name")
    reason: str = Field(default="", description="Machine-readable reason")
    items: tuple[tuple[str, str], ...] = Field(
        default=(),
        description="Ordered key/value lines for a context block",
    )
    text: str = Field(default="", description="Preformatted context text")
    note: str = Field(default="", description="Diagnostic note")

    @classmethod
    def silent(cls, note: str = "") -> "Verdict":
        """Create a SILENT allow."""
        return cls(kind=VerdictKind.SILENT, note=note)

    @classmethod
    def context(
        cls,
        gate: str,
        items: dict[str, str] | None = None,
        text: str = "",
    ) -> "Verdict":
        """Create an allow that injects guidance text."""
        return cls(
            kind=VerdictKind.CONTEXT,
            gate=gate,
            items=tuple((items or {}).items()),
            text=text,
        )

    @classmethod
    def deny(cls, gate: str, reason: str) -> "Verdict":
        """Create a DENY."""
        return cls(kind=VerdictKind.DENY, gate=gate, reason=reason)

    @property
    def denied(self) -> bool:
        """Whether this verdict blocks the event."""
        return self.kind == VerdictKind.DENY


# =============================================================================
# Config Models
# =============================================================================


class ReadConfig(BaseModel):
    """
    Policy for Read/Glob/Grep.

    Attributes:
        enabled: When false, blocked_paths/blocked_extensions are not enforced
        blocked_paths: Case-insensitive substrings that deny a read
        blocked_extensions: Case-insensitive suffixes that deny a read
        warn_extensions: Suffixes that allow with a secrets warning
        warn_patterns: Substrings that allow with a secrets warning
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    enabled: bool = True
    blocked_paths: list[str] = Field(
        default_factory=lambda: [
            "/etc/shadow",
            "/etc/passwd",
            "/.ssh/id_rsa",
            "/.ssh/id_ed25519",
            "/.aws/credentials",
            "/.gnupg/",
        ],
    )
    blocked_extensions: list[str] = Field(
        default_factory=lambda: [".pem", ".key", ".p12", ".pfx"],
    )
    warn_extensions: list[str] = Field(
        default_factory=lambda: [".env", ".secret"],
    )
    warn_patterns: list[str] = Field(
        default_factory=lambda: ["credentials", "password", "token"],
    )


class BashConfig(BaseModel):
    """
    Policy for Bash.

    Attributes:
        enabled: When false, blocked_commands are not enforced
        blocked_commands: Case-insensitive substrings that deny a command
        warn_commands: Substrings that allow with a warning
        legacy_enabled: Deny legacy CLI tools that have a preferred replacement
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    enabled: bool = True
    blocked_commands: list[str] = Field(
        default_factory=lambda: [
            "rm -rf /",
            "rm -rf /*",
            "> /dev/sda",
            "curl | bash",
            "wget | sh",
            ":(){ :|:& };:",
        ],
    )
    warn_commands: list[str] = Field(
        default_factory=lambda: ["sudo", "rm -rf"],
    )
    legacy_enabled: bool = True


class WriteConfig(BaseModel):
    """Policy for Write/Edit: substrings of paths that may never be written."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    enabled: bool = True
    blocked_paths: list[str] = Field(
        default_factory=lambda: ["/etc/", "/usr/", "/bin/", "/.ssh/", "/.aws/"],
    )


class IntentConfig(BaseModel):
    """Prompt classification settings."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    enabled: bool = True


class QualityConfig(BaseModel):
    """
    Post-write budgets.

    Attributes:
        max_lines: Maximum lines in one written chunk of source code
        max_depth: Maximum folder depth of a source file below the workspace
        max_lint_warnings: How many style warnings to report at most
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    max_lines: int = Field(default=100, gt=0)
    max_depth: int = Field(default=7, gt=0)
    max_lint_warnings: int = Field(default=3, gt=0)


class GatesConfig(BaseModel):
    """
    Complete gate configuration.

    Loaded once per invocation and passed explicitly to the dispatcher.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    read: ReadConfig = Field(default_factory=ReadConfig)
    bash: BashConfig = Field(default_factory=BashConfig)
    write: WriteConfig = Field(default_factory=WriteConfig)
    intent: IntentConfig = Field(default_factory=IntentConfig)
    quality: QualityConfig = Field(default_factory=QualityConfig)


# =============================================================================
# Config Loading Helpers
# =============================================================================


def default_config_path() -> Path:
    """Location of the gates config (TOLLGATE_CONFIG overrides)."""
    override = os.environ.get("TOLLGATE_CONFIG")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".claude" / "gates" / "config.json"


def load_config_from_string(content: str, fmt: str = "json") -> GatesConfig:
    """
    Load a config from JSON or YAML text.

    Raises:
        ConfigLoadError: If the text does not parse or validate
    """
    try:
        data = yaml.safe_load(content) if fmt == "yaml" else json.loads(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigLoadError(underlying_error=str(e)) from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigLoadError(underlying_error="top level must be an object")
    try:
        return GatesConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigLoadError(underlying_error=str(e)) from e


def load_config(path: Path | str) -> GatesConfig:
    """
    Load a config file. YAML is used for .yaml/.yml, JSON otherwise.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigLoadError: If the file can't be read or doesn't match the schema
    """
    path = Path(path)
    fmt = "yaml" if path.suffix.lower() in (".yaml", ".yml") else "json"
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigLoadError(
            path=str(path), underlying_error=str(e), code=ERROR_CONFIG_UNREADABLE
        ) from e
    try:
        return load_config_from_string(content, fmt)
    except ConfigLoadError as e:
        raise ConfigLoadError(path=str(path), underlying_error=e.underlying_error) from e


def load_config_or_default(path: Path | str | None = None) -> GatesConfig:
    """
    Load the gates config, falling back to built-in defaults.

    Never raises: a missing file is normal, an invalid one is logged.
    """
    path = Path(path) if path else default_config_path()
    try:
        return load_config(path)
    except FileNotFoundError:
        return GatesConfig()
    except ConfigLoadError as e:
        logger.warning(f"Ignoring gates config: {e.message}")
        return GatesConfig()
