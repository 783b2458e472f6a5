"""
Session lifecycle reports.

Each render_* function mutates the record the way the lifecycle step
requires and returns the bracket-block text to show. Saving the record is
left to the caller, so the same functions back both the `tollgate session`
commands and the session-lifecycle hook chain.
"""

from pathlib import Path

from tollgate.blocks import format_block, parse_fields
from tollgate.errors import StorageReadError
from tollgate.session.record import SessionRecord
from tollgate.session.store import SessionStore

DACE_MODE = "lazy_load,skill_first,on_demand"


def memory_dir(store: SessionStore) -> Path:
    """Long-term memory bank, a sibling of the state directory."""
    return store.state_dir.parent / "memory"


def count_memory_docs(directory: Path) -> int:
    """Number of .toon documents below a directory (0 if unreadable)."""
    try:
        return sum(1 for p in directory.rglob("*.toon") if p.is_file())
    except OSError:
        return 0


def load_scratchpad_task(store: SessionStore, project: str) -> tuple[str, str] | None:
    """(intent, status) saved in the project's scratchpad, if any."""
    if not project:
        return None
    path = store.state_dir / "projects" / project / "scratchpad.toon"
    try:
        fields = parse_fields(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError):
        return None
    intent = fields.get("intent", "")
    if not intent or intent == "null":
        return None
    return intent, fields.get("status", "")


def done_or_pending(flag: bool) -> str:
    return "done" if flag else "pending"


def session_type(record: SessionRecord) -> str:
    if record.post_compact:
        return "post_compact_recovery"
    if record.research_done or record.memory_queried:
        return "resumed_session"
    return "fresh_session"


def _session_block(record: SessionRecord) -> str:
    return format_block("SESSION", [
        ("id", record.id),
        ("project", record.project),
        ("research_mode", "always"),
        ("research_done", record.research_done),
        ("memory", record.memory_queried),
    ])


def render_init(record: SessionRecord, memory_docs: int) -> str:
    """Session start; after a compaction the active task is restored instead."""
    memory_line = f"[MEMORY] total: {memory_docs} | query: tollgate status\n"

    if record.post_compact:
        record.clear_post_compact()
        parts = [
            format_block("META", [
                ("protocol", "SP/1.0"),
                ("date", record.today),
                ("session", record.id),
                ("type", "post_compact_recovery"),
                ("compact_count", record.compact_count),
            ]),
            _session_block(record),
        ]
        if record.has_task():
            parts.append(f"[TASK:RESTORED] {record.current_task} | status: {record.task_status}\n")
        parts.append(memory_line)
        parts.append(f"[DACE] mode: {DACE_MODE} | CONTEXT_RESTORED\n")
        record.mark_memory_queried()
        return "\n".join(parts)

    parts = [
        format_block("META", [
            ("protocol", "SP/1.0"),
            ("date", record.today),
            ("session", record.id),
            ("type", session_type(record)),
        ]),
        format_block("TABULA_RASA", [
            ("cutoff", record.training_cutoff),
            ("today", record.today),
            ("rule", "WebSearch_BEFORE_code"),
            ("blocked", "I_think,I_believe,I_recall,Based_on_my_knowledge"),
        ]),
        format_block("NO_AMNESIA", [
            ("memory", "~/.local/shared/shared-ai/memory/"),
            ("forbidden", "I_have_no_memory,I_dont_have_access"),
        ]),
        _session_block(record),
        memory_line,
        f"[DACE] mode: {DACE_MODE}\n",
    ]
    record.mark_memory_queried()
    return "\n".join(parts)


def render_compact(record: SessionRecord) -> str:
    """Before context compaction: flag the record for recovery."""
    record.mark_post_compact()
    items: list[tuple[str, object]] = [
        ("date", record.today),
        ("session", record.id),
        ("project", record.project),
        ("compact_count", record.compact_count),
    ]
    if record.has_task():
        items.append(("task_saved", record.current_task))
    return "\n".join([
        format_block("COMPACT:DACE", items),
        "[POST_COMPACT]\nrun: tollgate session init\nThis restores the session context\n",
    ])


def render_resume(
    record: SessionRecord,
    memory_docs: int,
    scratchpad_task: tuple[str, str] | None,
) -> str:
    was_post_compact = record.post_compact
    record.clear_post_compact()

    header: list[tuple[str, object]] = [
        ("date", record.today),
        ("session", record.id),
        ("project", record.project),
    ]
    if was_post_compact:
        header.append(("compact_recovered", True))

    if record.has_task():
        task = f"[TASK] {record.current_task} | status: {record.task_status}\n"
    elif scratchpad_task:
        task = f"[TASK] {scratchpad_task[0]} | status: {scratchpad_task[1]}\n"
    else:
        task = "[TASK] none | Ask user for next task\n"

    record.mark_memory_queried()
    return "\n".join([
        format_block("RESUME:DACE", header),
        "[STATE]\n"
        f"research_done: {done_or_pending(record.research_done)} | "
        f"memory: {done_or_pending(record.memory_queried)} | "
        f"ceo: {done_or_pending(record.ceo_invoked)}\n",
        "[ENFORCE]\n"
        f"TABULA_RASA: cutoff={record.training_cutoff} | WebSearch BEFORE code\n"
        "NO_AMNESIA: query memory bank\n",
        task,
        f"[MEMORY] {memory_docs} docs | query: tollgate status\n",
    ])


def render_end(record: SessionRecord) -> str:
    """End of session summary; an open task is flagged and marked ended."""
    parts = [
        format_block("END", [
            ("date", record.today),
            ("session", record.id),
            ("project", record.project),
            ("turns", record.turn_count),
            ("tasks_created", record.tasks_created),
            ("tasks_completed", record.tasks_completed),
            ("files_modified", len(record.files_modified)),
        ]),
        format_block("STATE", [
            ("research_done", record.research_done),
            ("memory", record.memory_queried),
            ("ceo", record.ceo_invoked),
            ("aegis", record.aegis_verified),
        ]),
    ]
    if record.has_task():
        parts.append(format_block("TASK_WARNING", [
            ("task", record.current_task),
            ("status", f"{record.task_status} (not completed before session end)"),
        ]))
        record.task_status = "ended"
    parts.append("status: persisted\n")
    return "\n".join(parts)


def render_land(record: SessionRecord) -> str:
    """Wrap up a task: metrics plus the remaining checklist."""
    if record.has_task():
        task = format_block("TASK", [("task", record.current_task), ("status", record.task_status)])
    else:
        task = format_block("TASK", [("task", "none")])

    checklist = ["[CHECKLIST]"]
    if not record.aegis_verified:
        checklist.append("  - Run: verification (aegis-guardian)")
    checklist.append("  - Run: tollgate session end")

    text = "\n".join([
        format_block("SESSION:LAND", [
            ("session", record.id),
            ("project", record.project),
            ("date", record.today),
        ]),
        task,
        format_block("METRICS", [
            ("turns", record.turn_count),
            ("tasks_created", record.tasks_created),
            ("tasks_completed", record.tasks_completed),
            ("files_modified", len(record.files_modified)),
            ("research_done", record.research_done),
            ("aegis_verified", record.aegis_verified),
        ]),
        "\n".join(checklist) + "\n",
    ])
    record.task_status = "landing"
    return text


def render_status(record: SessionRecord) -> str:
    state: list[tuple[str, object]] = [
        ("research_done", done_or_pending(record.research_done)),
        ("memory", done_or_pending(record.memory_queried)),
        ("ceo", done_or_pending(record.ceo_invoked)),
        ("aegis", done_or_pending(record.aegis_verified)),
        ("turn_count", record.turn_count),
    ]
    if record.has_task():
        state.append(("task", f"{record.current_task} ({record.task_status})"))
    return "\n".join([
        format_block("STATUS", [
            ("today", record.today),
            ("cutoff", record.training_cutoff),
            ("session", record.id),
            ("project", record.project),
        ]),
        format_block("ENFORCE", [
            ("TABULA_RASA", "active"),
            ("DATE_INJECTION", record.today),
            ("NO_AMNESIA", "~/.local/shared/shared-ai/memory/"),
            ("NO_ASSUMPTION", "verify_before_act"),
            ("DACE", "lazy_load,skill_first"),
        ]),
        format_block("STATE", state),
    ])


def validate(store: SessionStore) -> tuple[str, bool]:
    """
    Health check of session state and the memory bank.

    Returns:
        (report text, passed). Governance file and STM directory only warn.
    """
    today = store.today()
    passed = True
    lines = ["[VALIDATE]", f"date: {today}", ""]

    try:
        record = store.read()
    except StorageReadError as e:
        record = None
        lines.append(f"session: FAIL (unreadable: {e.underlying_error})")
        passed = False
    else:
        if record is None:
            lines.append("session: FAIL (no session state)")
            passed = False
        elif record.today != today:
            lines.append(f"session: FAIL (stale date: {record.today} != {today})")
            passed = False
        else:
            lines.append(f"session: PASS (id: {record.session_id})")

    memory = memory_dir(store)
    if memory.is_dir():
        lines.append(f"memory_bank: PASS ({count_memory_docs(memory)} files)")
    else:
        lines.append("memory_bank: FAIL (directory missing)")
        passed = False

    lines.append("governance: PASS" if (memory / "GOVERNANCE.toon").exists()
                 else "governance: WARN (not found)")
    lines.append("stm: PASS" if store.state_dir.exists() else "stm: WARN (not found)")

    if record is not None:
        lines.append(f"research: {done_or_pending(record.research_done)}")

    lines.append("")
    lines.append("[RESULT] PASS" if passed else "[RESULT] FAIL")
    return "\n".join(lines) + "\n", passed
