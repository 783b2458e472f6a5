"""
Per-session state record.

The record is what keeps decisions consistent across hook calls: whether
research happened this turn, which task is active, how many turns have gone
by since guidance was last reinforced. It is created lazily, persisted as a
whole after each mutation, and only valid for the day it was created.

Mutating methods only change the in-memory record. Persisting is the
caller's job (SessionStore.save or GateContext.commit).
"""

import hashlib
from datetime import date
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from tollgate.blocks import format_block, format_value, join_escaped, parse_fields, split_csv, split_escaped

DEFAULT_CUTOFF = "2025-01"
DEFAULT_REINFORCE_EVERY = 15

HEADER = "# Session State - SP/1.0\n# Auto-generated, do not edit\n"


def session_id_for(work_dir: str, day: date) -> str:
    """Stable per-directory, per-day session identifier."""
    digest = hashlib.sha256(f"{work_dir}{day:%Y%m%d}".encode()).hexdigest()
    return f"sess_{digest[:16]}"


def detect_project(work_dir: Path) -> str:
    """Directory name when it is a git checkout, else empty."""
    try:
        if (work_dir / ".git").exists():
            return work_dir.name
    except OSError:
        pass
    return ""


class SessionRecord(BaseModel):
    """
    Mutable per-session state.

    Field names follow Python conventions; the persisted keys (see
    to_text/from_text) keep the short names of the on-disk format.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    today: str = ""
    project: str = ""
    work_dir: str = ""
    training_cutoff: str = DEFAULT_CUTOFF

    research_done: bool = False
    memory_queried: bool = False
    ceo_invoked: bool = False
    nlu_parsed: bool = False
    turn_count: int = 0
    last_reinforce_turn: int = 0
    reinforce_every_n: int = DEFAULT_REINFORCE_EVERY
    session_id: str = ""

    post_compact: bool = False
    compact_count: int = 0

    aegis_verified: bool = False
    tasks_created: int = 0
    tasks_completed: int = 0
    research_topic: str = ""

    current_task: str = ""
    task_status: str = ""

    intent_type: str = ""
    intent_domain: str = ""
    intent_sub_agents: list[str] = Field(default_factory=list)
    intent_skills: list[str] = Field(default_factory=list)

    files_modified: list[str] = Field(default_factory=list)

    @classmethod
    def create(cls, day: date, work_dir: Path) -> "SessionRecord":
        """Fresh record for a working directory on a given day."""
        sid = session_id_for(str(work_dir), day)
        return cls(
            id=sid,
            session_id=sid,
            today=day.isoformat(),
            project=detect_project(work_dir),
            work_dir=str(work_dir),
        )

    # -------------------------------------------------------------------------
    # Turn tracking
    # -------------------------------------------------------------------------

    def increment_turn(self) -> None:
        self.turn_count += 1

    def reset_research_for_new_prompt(self) -> None:
        """A new prompt needs fresh research unless a task carries over."""
        if not self.has_task():
            self.research_done = False
            self.ceo_invoked = False

    def needs_reinforcement(self) -> bool:
        every = self.reinforce_every_n if self.reinforce_every_n > 0 else DEFAULT_REINFORCE_EVERY
        return self.turn_count - self.last_reinforce_turn >= every

    def mark_reinforcement_done(self) -> None:
        self.last_reinforce_turn = self.turn_count

    # -------------------------------------------------------------------------
    # Flags
    # -------------------------------------------------------------------------

    def mark_nlu_parsed(self) -> None:
        self.nlu_parsed = True

    def mark_ceo_invoked(self) -> None:
        self.ceo_invoked = True

    def mark_memory_queried(self) -> None:
        self.memory_queried = True

    def mark_research_done(self, topic: str = "") -> None:
        """Record that research happened; an empty topic keeps the previous one."""
        self.research_done = True
        if topic:
            self.research_topic = topic

    def mark_post_compact(self) -> None:
        self.post_compact = True
        self.compact_count += 1

    def clear_post_compact(self) -> None:
        self.post_compact = False

    # -------------------------------------------------------------------------
    # Task and intent
    # -------------------------------------------------------------------------

    def has_task(self) -> bool:
        return bool(self.current_task)

    def set_current_task(self, task: str) -> None:
        self.current_task = task
        self.task_status = "in_progress"

    def clear_task(self) -> None:
        self.current_task = ""
        self.task_status = ""

    def store_intent(
        self,
        intent_type: str,
        domain: str,
        sub_agents: list[str],
        skills: list[str],
    ) -> None:
        self.intent_type = intent_type
        self.intent_domain = domain
        self.intent_sub_agents = list(sub_agents)
        self.intent_skills = list(skills)

    def add_file_modified(self, path: str) -> None:
        """Add a path to the modified set; exact duplicates are ignored."""
        if path and path not in self.files_modified:
            self.files_modified.append(path)

    # -------------------------------------------------------------------------
    # Text format
    # -------------------------------------------------------------------------

    def to_text(self) -> str:
        """Render the whole record in the persisted bracket-block format."""
        blocks = [
            format_block("SESSION", [
                ("id", _line(self.id)),
                ("today", _line(self.today)),
                ("project", _line(self.project)),
                ("workdir", _line(self.work_dir)),
                ("cutoff", _line(self.training_cutoff)),
            ]),
            format_block("STATE", [
                ("research_done", self.research_done),
                ("memory", self.memory_queried),
                ("ceo", self.ceo_invoked),
                ("nlu", self.nlu_parsed),
                ("turn_count", self.turn_count),
                ("last_reinforce_turn", self.last_reinforce_turn),
                ("reinforce_every_n", self.reinforce_every_n),
                ("session_id", _line(self.session_id)),
            ]),
            format_block("COMPACT", [
                ("post_compact", self.post_compact),
                ("compact_count", self.compact_count),
            ]),
            format_block("METRICS", [
                ("aegis", self.aegis_verified),
                ("tasks_created", self.tasks_created),
                ("tasks_completed", self.tasks_completed),
                ("research_topic", _line(self.research_topic)),
            ]),
            format_block("TASK", [
                ("task", _line(self.current_task)),
                ("task_status", _line(self.task_status)),
            ]),
            format_block("FILES", [
                ("files", join_escaped(_line(f) for f in self.files_modified)),
            ]),
        ]
        if self.intent_type or self.intent_domain:
            blocks.append(format_block("INTENT_BRIDGE", [
                ("type", _line(self.intent_type)),
                ("domain", _line(self.intent_domain)),
                ("subagents", self.intent_sub_agents),
                ("skills", self.intent_skills),
            ]))
        return HEADER + "\n" + "\n".join(blocks)

    @classmethod
    def from_text(cls, text: str, base: "SessionRecord") -> "SessionRecord":
        """
        Overlay persisted values onto a base record.

        Unknown keys are ignored, missing keys keep the base value and
        malformed integers fall back to the field default.
        """
        fields = parse_fields(text)
        record = base.model_copy(deep=True)

        for key, attr in _TEXT_FIELDS.items():
            if key in fields:
                setattr(record, attr, fields[key])

        research = fields.get("research_done", fields.get("research"))
        if research is not None:
            record.research_done = research == "true"
        for key, attr in _BOOL_FIELDS.items():
            if key in fields:
                setattr(record, attr, fields[key] == "true")

        for key, (attr, default) in _INT_FIELDS.items():
            if key in fields:
                setattr(record, attr, _to_int(fields[key], default))

        for key, attr in _LIST_FIELDS.items():
            if key in fields:
                setattr(record, attr, split_csv(fields[key]))

        if "files" in fields:
            record.files_modified = split_escaped(fields["files"])

        return record


_TEXT_FIELDS = {
    "id": "id",
    "today": "today",
    "project": "project",
    "workdir": "work_dir",
    "cutoff": "training_cutoff",
    "session_id": "session_id",
    "research_topic": "research_topic",
    "task": "current_task",
    "task_status": "task_status",
    "type": "intent_type",
    "domain": "intent_domain",
}

_BOOL_FIELDS = {
    "memory": "memory_queried",
    "ceo": "ceo_invoked",
    "nlu": "nlu_parsed",
    "post_compact": "post_compact",
    "aegis": "aegis_verified",
}

_INT_FIELDS = {
    "turn_count": ("turn_count", 0),
    "last_reinforce_turn": ("last_reinforce_turn", 0),
    "reinforce_every_n": ("reinforce_every_n", DEFAULT_REINFORCE_EVERY),
    "compact_count": ("compact_count", 0),
    "tasks_created": ("tasks_created", 0),
    "tasks_completed": ("tasks_completed", 0),
}

_LIST_FIELDS = {
    "subagents": "intent_sub_agents",
    "skills": "intent_skills",
}


def _to_int(value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        return default


def _line(value: str) -> str:
    # one value per line in the persisted format
    return format_value(value).replace("\r", " ").replace("\n", " ").strip()
