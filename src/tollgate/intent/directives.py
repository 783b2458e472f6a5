"""
Guidance text injected on prompt submission.

Each function renders one block; the prompt chain joins them with a blank
line.
"""

from tollgate.intent.classifier import Intent
from tollgate.intent.rules import DELEGATING_INTENTS

DACE_LINE = "[DACE] max:100lines depth:5-7levels split:concern no:duplicates no:monoliths"


def status_directive() -> str:
    return (
        "[BINARY_FIRST]\n"
        "action: IMMEDIATE\n"
        "command: tollgate status\n"
        "FORBIDDEN: Task(Explore), Read(docs/*.md)\n"
        "reason: Session state is the single source of truth"
    )


def recovery_block(turn: int, today: str) -> str:
    """Shown on the first prompt after context compaction."""
    return (
        f"[RECOVERY] turn={turn} state=tollgate_status research=WebSearch_{today} "
        "binary=tollgate_FIRST dace=100lines_5depth"
    )


def reinforce_block(turn: int, today: str) -> str:
    return f"[REINFORCE] turn={turn} research={today} dace=100lines_5depth fix=root_cause"


def intent_directive(intent: Intent, today: str, research_done: bool, cutoff: str) -> str:
    """
    Render the routing directive for a classified prompt.

    Args:
        intent: Classification result
        today: Current date, YYYY-MM-DD
        research_done: Whether research already happened this turn
        cutoff: Training cutoff shown in the research block
    """
    header = f"[INTENT] type={intent.intent_type}"
    if intent.domain:
        header += f" domain={intent.domain}"
    lines = [f"{header} confidence={intent.confidence} date={today}"]

    if intent.research_required and not research_done:
        lines.append(
            "[BLOCK:RESEARCH] BLOCKED: WebSearch required before implementation. "
            f"Training weights are stale (cutoff: {cutoff}). today:{today}"
        )

    if intent.skills:
        calls = " ".join(f'Skill(skill:"{s.lstrip("/")}")' for s in intent.skills)
        lines.append(f"[SKILL:AUTO_INVOKE] MANDATORY: {calls}")

    if intent.intent_type == "research":
        lines.append("[BLOCK:DELEGATION] MUST: Task(subagent_type='research-director') BEFORE any code")
    elif intent.intent_type in DELEGATING_INTENTS:
        lines.append("[BLOCK:DELEGATION] MUST: Task(subagent_type='ceo') BEFORE Write/Edit")
    else:
        lines.append(f"[AGENT] primary={intent.agent}")

    lines.append(DACE_LINE)
    return "\n".join(lines) + "\n"
