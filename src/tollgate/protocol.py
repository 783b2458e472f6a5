"""
Verdict to host-response encoding.

Exactly one JSON object, on one line, is written per dispatch. Shapes:

    silent          {"decision": "approve", "reason": "ok"}
    context         {"decision": "approve", "reason": <gate>, "additionalContext": <block>}
    deny            {"hookSpecificOutput": {"hookEventName": "PreToolUse" | "PostToolUse",
                     "permissionDecision": "deny", "permissionDecisionReason": <reason>,
                     "additionalContext": "[BLOCK]\\ngate: ..\\nreason: ..\\ndate: ..\\n"}}
    prompt-submit   {"hookEventName": "UserPromptSubmit", "additionalContext": <text or "">}
"""

import json
from typing import Any, TextIO

from tollgate.blocks import format_block
from tollgate.errors import GateDeniedError
from tollgate.schema import EventCategory, Verdict, VerdictKind

_POST_CATEGORIES = (EventCategory.POST_TOOL, EventCategory.POST_WRITE)


def context_text(verdict: Verdict, today: str) -> str:
    """Text injected for a context verdict."""
    if verdict.text:
        return verdict.text
    return format_block(verdict.gate, [*verdict.items, ("date", today)])


def deny_event_name(category: EventCategory | None, hook_event_name: str = "") -> str:
    if category in _POST_CATEGORIES or hook_event_name == "PostToolUse":
        return "PostToolUse"
    return "PreToolUse"


def encode_verdict(
    verdict: Verdict,
    category: EventCategory | None,
    today: str,
    hook_event_name: str = "",
) -> dict[str, Any]:
    """
    Build the response object for a verdict.

    Args:
        verdict: The decision
        category: Chain the verdict came from (None if unresolved)
        today: Date stamped into generated blocks
        hook_event_name: Host event name of the request, if known
    """
    if verdict.kind == VerdictKind.DENY:
        block = format_block("BLOCK", [
            ("gate", verdict.gate),
            ("reason", verdict.reason),
            ("date", today),
        ])
        return {
            "hookSpecificOutput": {
                "hookEventName": deny_event_name(category, hook_event_name),
                "permissionDecision": "deny",
                "permissionDecisionReason": verdict.reason,
                "additionalContext": block,
            }
        }

    if category == EventCategory.PROMPT_SUBMIT:
        text = context_text(verdict, today) if verdict.kind == VerdictKind.CONTEXT else ""
        return {"hookEventName": "UserPromptSubmit", "additionalContext": text}

    if verdict.kind == VerdictKind.CONTEXT:
        return {
            "decision": "approve",
            "reason": verdict.gate,
            "additionalContext": context_text(verdict, today),
        }

    return {"decision": "approve", "reason": verdict.note or "ok"}


def write_verdict(
    verdict: Verdict,
    category: EventCategory | None,
    stream: TextIO,
    today: str,
    hook_event_name: str = "",
) -> None:
    """Write the single response line and flush."""
    payload = encode_verdict(verdict, category, today, hook_event_name)
    stream.write(json.dumps(payload, ensure_ascii=False) + "\n")
    stream.flush()


def as_error(verdict: Verdict, tool: str = "") -> GateDeniedError | None:
    """Describe a deny as an error object for diagnostics."""
    if verdict.kind != VerdictKind.DENY:
        return None
    return GateDeniedError(gate=verdict.gate, reason=verdict.reason, tool=tool)
