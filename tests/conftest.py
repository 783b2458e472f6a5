"""
Pytest configuration and fixtures for Tollgate tests.

This module provides shared fixtures used across unit, integration,
and security tests: a temporary state directory, a session store with a
fixed clock, and helpers that build hook events.
"""

import tempfile
from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import Any, Generator

import pytest

from tollgate.gates import GateContext
from tollgate.schema import EventCategory, GatesConfig, HookEvent
from tollgate.session import SessionStore

TODAY = date(2026, 1, 15)
WORK_DIR = Path("/work/proj")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def state_dir(temp_dir: Path) -> Path:
    """Session state directory inside the temp dir."""
    path = temp_dir / "stm"
    path.mkdir()
    return path


@pytest.fixture
def store(state_dir: Path) -> SessionStore:
    """Store pinned to 2026-01-15 and a workspace at /work/proj."""
    return SessionStore(state_dir=state_dir, clock=lambda: TODAY, cwd=lambda: WORK_DIR)


@pytest.fixture
def config() -> GatesConfig:
    return GatesConfig()


@pytest.fixture
def make_event() -> Callable[..., HookEvent]:
    """Build a HookEvent from a tool name and tool_input fields."""

    def build(tool_name: str = "", prompt: str = "", hook: str = "", **tool_input: Any) -> HookEvent:
        return HookEvent(
            tool_name=tool_name,
            tool_input=tool_input,
            prompt=prompt,
            hook_event_name=hook,
        )

    return build


@pytest.fixture
def make_context(
    config: GatesConfig, store: SessionStore
) -> Callable[[HookEvent, EventCategory], GateContext]:
    """Bind an event to a category, the default config and the test store."""

    def build(event: HookEvent, category: EventCategory) -> GateContext:
        return GateContext(event.with_category(category), config, store)

    return build
