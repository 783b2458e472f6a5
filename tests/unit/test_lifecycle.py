"""
Unit tests for session lifecycle reports and validation.
"""

from datetime import date
from pathlib import Path

import pytest

from tollgate.session import SessionRecord, SessionStore
from tollgate.session import lifecycle


def parse_sections(text: str) -> dict[str, dict[str, str]]:
    """Group a rendered report's key/value lines by their [SECTION] header."""
    sections: dict[str, dict[str, str]] = {}
    current = ""
    for line in text.splitlines():
        if line.startswith("[") and "]" in line:
            current = line[1:line.index("]")]
            sections.setdefault(current, {})
            continue
        key, sep, value = line.partition(":")
        if sep:
            sections.setdefault(current, {})[key.strip()] = value.strip()
    return sections


@pytest.fixture
def record(store: SessionStore) -> SessionRecord:
    return store.load_or_create()


@pytest.fixture
def memory(store: SessionStore) -> Path:
    path = lifecycle.memory_dir(store)
    path.mkdir()
    return path


class TestHelpers:
    def test_memory_dir_is_sibling_of_state(self, store: SessionStore) -> None:
        assert lifecycle.memory_dir(store) == store.state_dir.parent / "memory"

    def test_count_memory_docs(self, memory: Path) -> None:
        (memory / "a.toon").write_text("x")
        (memory / "sub").mkdir()
        (memory / "sub" / "b.toon").write_text("x")
        (memory / "notes.md").write_text("x")
        assert lifecycle.count_memory_docs(memory) == 2

    def test_count_missing_dir(self, temp_dir: Path) -> None:
        assert lifecycle.count_memory_docs(temp_dir / "nope") == 0

    def test_scratchpad_task(self, store: SessionStore) -> None:
        pad = store.state_dir / "projects" / "shop" / "scratchpad.toon"
        pad.parent.mkdir(parents=True)
        pad.write_text("[SCRATCHPAD]\nintent: Refine checkout\nstatus: paused\n")
        assert lifecycle.load_scratchpad_task(store, "shop") == ("Refine checkout", "paused")
        assert lifecycle.load_scratchpad_task(store, "other") is None
        assert lifecycle.load_scratchpad_task(store, "") is None

    def test_scratchpad_null_intent(self, store: SessionStore) -> None:
        pad = store.state_dir / "projects" / "shop" / "scratchpad.toon"
        pad.parent.mkdir(parents=True)
        pad.write_text("intent: null\n")
        assert lifecycle.load_scratchpad_task(store, "shop") is None

    def test_session_type(self, record: SessionRecord) -> None:
        assert lifecycle.session_type(record) == "fresh_session"
        record.mark_memory_queried()
        assert lifecycle.session_type(record) == "resumed_session"
        record.mark_post_compact()
        assert lifecycle.session_type(record) == "post_compact_recovery"


class TestRenderInit:
    def test_fresh(self, record: SessionRecord) -> None:
        text = lifecycle.render_init(record, 4)
        sections = parse_sections(text)
        assert sections["META"]["type"] == "fresh_session"
        assert sections["TABULA_RASA"]["cutoff"] == "2025-01"
        assert sections["TABULA_RASA"]["today"] == "2026-01-15"
        assert "NO_AMNESIA" in sections
        assert "[MEMORY] total: 4 | query: tollgate status\n" in text
        assert record.memory_queried

    def test_post_compact_restores_task(self, record: SessionRecord) -> None:
        record.set_current_task("Fix parser")
        record.mark_post_compact()
        text = lifecycle.render_init(record, 0)
        assert "type: post_compact_recovery" in text
        assert "compact_count: 1" in text
        assert "[TASK:RESTORED] Fix parser | status: in_progress\n" in text
        assert "| CONTEXT_RESTORED" in text
        assert "[TABULA_RASA]" not in text
        assert not record.post_compact


class TestRenderCompactResume:
    def test_compact(self, record: SessionRecord) -> None:
        record.set_current_task("Fix parser")
        text = lifecycle.render_compact(record)
        assert parse_sections(text)["COMPACT:DACE"]["task_saved"] == "Fix parser"
        assert "run: tollgate session init" in text
        assert record.post_compact
        assert record.compact_count == 1

    def test_resume_after_compact(self, record: SessionRecord) -> None:
        record.mark_post_compact()
        record.set_current_task("Fix parser")
        text = lifecycle.render_resume(record, 2, None)
        assert "compact_recovered: true" in text
        assert "[TASK] Fix parser | status: in_progress\n" in text
        assert "[MEMORY] 2 docs | query: tollgate status\n" in text
        assert "memory: done" in text
        assert not record.post_compact

    def test_resume_uses_scratchpad(self, record: SessionRecord) -> None:
        text = lifecycle.render_resume(record, 0, ("Refine checkout", "paused"))
        assert "[TASK] Refine checkout | status: paused\n" in text
        assert "compact_recovered" not in text

    def test_resume_without_task(self, record: SessionRecord) -> None:
        text = lifecycle.render_resume(record, 0, None)
        assert "[TASK] none | Ask user for next task\n" in text
        assert "research_done: pending" in text


class TestRenderEndLand:
    def test_end_with_open_task(self, record: SessionRecord) -> None:
        record.set_current_task("Fix parser")
        record.add_file_modified("/work/proj/a.py")
        text = lifecycle.render_end(record)
        sections = parse_sections(text)
        assert sections["END"]["files_modified"] == "1"
        assert sections["TASK_WARNING"]["task"] == "Fix parser"
        assert record.task_status == "ended"
        assert text.endswith("status: persisted\n")

    def test_end_without_task(self, record: SessionRecord) -> None:
        text = lifecycle.render_end(record)
        assert "[TASK_WARNING]" not in text
        assert record.task_status == ""

    def test_land(self, record: SessionRecord) -> None:
        record.set_current_task("Fix parser")
        text = lifecycle.render_land(record)
        assert "[SESSION:LAND]" in text
        assert "  - Run: verification (aegis-guardian)" in text
        assert "  - Run: tollgate session end" in text
        assert record.task_status == "landing"

    def test_land_verified(self, record: SessionRecord) -> None:
        record.aegis_verified = True
        text = lifecycle.render_land(record)
        assert "aegis-guardian" not in text
        assert "task: none" in text


class TestRenderStatus:
    def test_status(self, record: SessionRecord) -> None:
        record.mark_research_done()
        record.set_current_task("Fix parser")
        sections = parse_sections(lifecycle.render_status(record))
        assert sections["STATUS"]["today"] == "2026-01-15"
        assert sections["ENFORCE"]["DATE_INJECTION"] == "2026-01-15"
        assert sections["STATE"]["research_done"] == "done"
        assert sections["STATE"]["memory"] == "pending"
        assert sections["STATE"]["task"] == "Fix parser (in_progress)"


class TestValidate:
    """Health check."""

    def test_no_session(self, store: SessionStore, memory: Path) -> None:
        text, passed = lifecycle.validate(store)
        assert not passed
        assert "session: FAIL (no session state)" in text
        assert text.endswith("[RESULT] FAIL\n")

    def test_pass(self, store: SessionStore, memory: Path) -> None:
        store.save(store.load_or_create())
        (memory / "GOVERNANCE.toon").write_text("x")
        text, passed = lifecycle.validate(store)
        assert passed
        assert "memory_bank: PASS (1 files)" in text
        assert "governance: PASS" in text
        assert "research: pending" in text
        assert text.endswith("[RESULT] PASS\n")

    def test_governance_only_warns(self, store: SessionStore, memory: Path) -> None:
        store.save(store.load_or_create())
        text, passed = lifecycle.validate(store)
        assert passed
        assert "governance: WARN (not found)" in text

    def test_missing_memory_bank(self, store: SessionStore) -> None:
        store.save(store.load_or_create())
        text, passed = lifecycle.validate(store)
        assert not passed
        assert "memory_bank: FAIL (directory missing)" in text

    def test_stale_session(self, state_dir: Path, memory: Path) -> None:
        old = SessionStore(state_dir=state_dir, clock=lambda: date(2026, 1, 1), cwd=lambda: Path("/work/proj"))
        old.save(old.load_or_create())
        now = SessionStore(state_dir=state_dir, clock=lambda: date(2026, 1, 15), cwd=lambda: Path("/work/proj"))
        text, passed = lifecycle.validate(now)
        assert not passed
        assert "session: FAIL (stale date: 2026-01-01 != 2026-01-15)" in text

    def test_unreadable_session(self, store: SessionStore, memory: Path) -> None:
        store.path.write_bytes(b"\xff\xfe")
        text, passed = lifecycle.validate(store)
        assert not passed
        assert "session: FAIL (unreadable:" in text
