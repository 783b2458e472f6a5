"""
Unit tests for response encoding and the dispatcher.

Tests cover:
- Response shapes per verdict kind and category
- Category resolution from host event and tool names
- End-to-end dispatch from raw stdin text to one JSON line
- Degraded verdicts when a chain raises
"""

import io
import json

import pytest

from tollgate import dispatcher as dispatcher_module
from tollgate.dispatcher import Dispatcher, resolve_category
from tollgate.errors import GateDeniedError
from tollgate.gates.base import Gate, GateContext
from tollgate.protocol import as_error, encode_verdict, write_verdict
from tollgate.schema import EventCategory, GatesConfig, HookEvent, Verdict, VerdictKind
from tollgate.session import SessionStore

TODAY = "2026-01-15"


# =============================================================================
# Protocol
# =============================================================================


class TestEncodeVerdict:
    """One JSON object per verdict."""

    def test_silent(self) -> None:
        assert encode_verdict(Verdict.silent(), EventCategory.PRE_TOOL, TODAY) == {
            "decision": "approve",
            "reason": "ok",
        }

    def test_silent_note(self) -> None:
        payload = encode_verdict(Verdict.silent(note="degraded:OSError"), EventCategory.PRE_TOOL, TODAY)
        assert payload["reason"] == "degraded:OSError"

    def test_context_items_get_date(self) -> None:
        verdict = Verdict.context("SKILL", {"skill": "sql", "status": "routed"})
        assert encode_verdict(verdict, EventCategory.PRE_TOOL, TODAY) == {
            "decision": "approve",
            "reason": "SKILL",
            "additionalContext": "[SKILL]\nskill: sql\nstatus: routed\ndate: 2026-01-15\n",
        }

    def test_context_text_is_verbatim(self) -> None:
        verdict = Verdict.context("SESSION", text="[END]\nstatus: persisted\n")
        payload = encode_verdict(verdict, EventCategory.SESSION_LIFECYCLE, TODAY)
        assert payload["additionalContext"] == "[END]\nstatus: persisted\n"

    def test_pre_tool_deny(self) -> None:
        payload = encode_verdict(Verdict.deny("BASH", "blocked_command"), EventCategory.PRE_TOOL, TODAY)
        assert payload == {
            "hookSpecificOutput": {
                "hookEventName": "PreToolUse",
                "permissionDecision": "deny",
                "permissionDecisionReason": "blocked_command",
                "additionalContext": "[BLOCK]\ngate: BASH\nreason: blocked_command\ndate: 2026-01-15\n",
            }
        }

    @pytest.mark.parametrize("category", [EventCategory.POST_TOOL, EventCategory.POST_WRITE])
    def test_post_deny_event_name(self, category: EventCategory) -> None:
        payload = encode_verdict(Verdict.deny("ANTIPROD", "x"), category, TODAY)
        assert payload["hookSpecificOutput"]["hookEventName"] == "PostToolUse"

    def test_prompt_submit_context(self) -> None:
        verdict = Verdict.context("INTENT", text="[INTENT] type=debug")
        assert encode_verdict(verdict, EventCategory.PROMPT_SUBMIT, TODAY) == {
            "hookEventName": "UserPromptSubmit",
            "additionalContext": "[INTENT] type=debug",
        }

    def test_prompt_submit_silent(self) -> None:
        assert encode_verdict(Verdict.silent(), EventCategory.PROMPT_SUBMIT, TODAY) == {
            "hookEventName": "UserPromptSubmit",
            "additionalContext": "",
        }

    def test_write_verdict_single_line(self) -> None:
        stream = io.StringIO()
        write_verdict(Verdict.context("X", {"k": "é"}), None, stream, TODAY)
        out = stream.getvalue()
        assert out.endswith("\n")
        assert out.count("\n") == 1
        assert "é" in out

    def test_as_error(self) -> None:
        error = as_error(Verdict.deny("READ", "sensitive_file"), "Read")
        assert isinstance(error, GateDeniedError)
        assert error.context["tool"] == "Read"
        assert as_error(Verdict.silent()) is None


# =============================================================================
# Category resolution
# =============================================================================


class TestResolveCategory:
    @pytest.mark.parametrize("hook,tool,expected", [
        ("UserPromptSubmit", "", EventCategory.PROMPT_SUBMIT),
        ("PreToolUse", "Bash", EventCategory.PRE_TOOL),
        ("PreToolUse", "Edit", EventCategory.PRE_WRITE),
        ("PostToolUse", "WebSearch", EventCategory.POST_TOOL),
        ("PostToolUse", "NotebookEdit", EventCategory.POST_WRITE),
        ("SubagentStart", "", EventCategory.SUBAGENT_INVOKE),
        ("SessionStart", "", EventCategory.SESSION_LIFECYCLE),
        ("PreCompact", "", EventCategory.SESSION_LIFECYCLE),
        ("SessionEnd", "", EventCategory.SESSION_LIFECYCLE),
    ])
    def test_resolution(self, hook: str, tool: str, expected: EventCategory) -> None:
        assert resolve_category(HookEvent(hook_event_name=hook, tool_name=tool)) == expected

    def test_unknown(self) -> None:
        assert resolve_category(HookEvent(hook_event_name="Notification")) is None
        assert resolve_category(HookEvent()) is None

    def test_explicit_category_wins(self) -> None:
        event = HookEvent(hook_event_name="PreToolUse", category=EventCategory.POST_TOOL)
        assert resolve_category(event) == EventCategory.POST_TOOL


# =============================================================================
# Dispatcher
# =============================================================================


class _Boom(Gate):
    name = "BOOM"

    def check(self, ctx: GateContext) -> Verdict | None:
        raise RuntimeError("gate exploded")


def _dispatch(store: SessionStore, raw: str, category: EventCategory | None = None) -> tuple[Verdict, dict]:
    stream = io.StringIO()
    verdict = Dispatcher(GatesConfig(), store, stream).dispatch(raw, category)
    return verdict, json.loads(stream.getvalue())


class TestDispatcher:
    """Raw stdin in, one JSON line out."""

    def test_explicit_category(self, store: SessionStore) -> None:
        raw = json.dumps({"tool_name": "Bash", "tool_input": {"command": "rm -rf /"}})
        verdict, payload = _dispatch(store, raw, EventCategory.PRE_TOOL)
        assert verdict.denied
        assert payload["hookSpecificOutput"]["permissionDecisionReason"] == "blocked_command"

    def test_auto_category(self, store: SessionStore) -> None:
        raw = json.dumps({
            "hook_event_name": "PreToolUse",
            "tool_name": "Write",
            "tool_input": {"file_path": "/work/proj/src/app.py", "content": "x = 1\n"},
        })
        verdict, payload = _dispatch(store, raw)
        assert verdict.gate == "TABULA_RASA"
        assert payload["hookSpecificOutput"]["hookEventName"] == "PreToolUse"

    def test_malformed_input_uses_empty_event(self, store: SessionStore) -> None:
        verdict, payload = _dispatch(store, "{this is not json", EventCategory.PRE_TOOL)
        assert verdict.kind == VerdictKind.SILENT
        assert payload == {"decision": "approve", "reason": "ok"}

    def test_malformed_prompt_event(self, store: SessionStore) -> None:
        _, payload = _dispatch(store, "garbage", EventCategory.PROMPT_SUBMIT)
        assert payload == {"hookEventName": "UserPromptSubmit", "additionalContext": ""}

    def test_unresolved_category_is_silent(self, store: SessionStore) -> None:
        verdict, payload = _dispatch(store, '{"hook_event_name": "Notification"}')
        assert verdict.kind == VerdictKind.SILENT
        assert payload["decision"] == "approve"

    def test_mutating_category_persists(self, store: SessionStore) -> None:
        raw = json.dumps({"tool_name": "WebSearch", "tool_input": {"query": "pydantic v3"}})
        _dispatch(store, raw, EventCategory.POST_TOOL)
        assert store.load().research_done

    def test_domain_only_prompt_persists_intent(self, store: SessionStore) -> None:
        _dispatch(store, json.dumps({"prompt": "the database schema"}), EventCategory.PROMPT_SUBMIT)
        record = store.load()
        assert record.intent_type == ""
        assert record.intent_domain == "database"
        assert record.intent_skills == ["/sql"]

    def test_chain_error_degrades(self, store: SessionStore, monkeypatch: pytest.MonkeyPatch) -> None:
        chains = dict(dispatcher_module.CHAINS)
        chains[EventCategory.PRE_TOOL] = (_Boom(),)
        monkeypatch.setattr(dispatcher_module, "CHAINS", chains)

        verdict, payload = _dispatch(store, '{"tool_name": "Bash"}', EventCategory.PRE_TOOL)
        assert verdict.kind == VerdictKind.SILENT
        assert verdict.note == "degraded:RuntimeError"
        assert payload == {"decision": "approve", "reason": "degraded:RuntimeError"}

    def test_unreadable_state_is_replaced(self, store: SessionStore) -> None:
        store.path.write_bytes(b"\xff\xfe")
        raw = json.dumps({"tool_name": "WebSearch", "tool_input": {"query": "q"}})
        verdict, _ = _dispatch(store, raw, EventCategory.POST_TOOL)
        assert verdict.kind == VerdictKind.SILENT
        assert store.load().research_done
