"""
Pre-tool chain: runs before any non-write tool.

Each gate only looks at the tools it owns, so the chain behaves like a
dispatch on tool name:

    Bash                 BASH -> RUST_CLI -> BASH (warnings)
    Read, Glob, Grep     READ
    Task                 CEO
    Skill                SKILL
    WebFetch             CONTENT
    TaskCreate/Update/Get/Output   TASK_GATE
"""

from tollgate.gates.base import Gate, GateContext
from tollgate.gates.common import AgentGate, ContentGate, orchestration_context
from tollgate.policy import predicates
from tollgate.schema import Verdict

VALID_TASK_STATUSES = ("pending", "in_progress", "completed", "deleted")


class BashGate(Gate):
    """Destructive and configured-blocked shell commands."""

    name = "BASH"

    def check(self, ctx: GateContext) -> Verdict | None:
        if ctx.event.tool_name != "Bash":
            return None
        command = ctx.event.get_string("command")
        if not command.strip():
            return self.deny("empty_command")
        if predicates.blocked_command(command, ctx.config.bash):
            return self.deny("blocked_command")
        return None


class RustCliGate(Gate):
    """Legacy CLI tools that have a preferred replacement."""

    name = "RUST_CLI"

    def check(self, ctx: GateContext) -> Verdict | None:
        if ctx.event.tool_name != "Bash" or not ctx.config.bash.legacy_enabled:
            return None
        legacy = predicates.detect_legacy_command(ctx.event.get_string("command"))
        if legacy:
            return self.deny(
                f"LEGACY_BLOCKED:{legacy.legacy}:USE:{legacy.replacement}:{legacy.reason}"
            )
        return None


class BashWarnGate(Gate):
    """Allowed but noteworthy shell commands."""

    name = "BASH"

    def check(self, ctx: GateContext) -> Verdict | None:
        if ctx.event.tool_name != "Bash":
            return None
        command = ctx.event.get_string("command")
        if command.lstrip().lower().startswith("sudo"):
            return self.context(warn="sudo_detected")
        warn = predicates.warn_command(command, ctx.config.bash)
        if warn:
            return self.context(warn=f"{warn}_detected")
        return None


class ReadGate(Gate):
    """Path policy for Read, Glob and Grep."""

    name = "READ"

    def check(self, ctx: GateContext) -> Verdict | None:
        tool = ctx.event.tool_name
        if tool not in ("Read", "Glob", "Grep"):
            return None
        path = ctx.event.get_string("file_path" if tool == "Read" else "path")
        if not path:
            return self.deny("no_file_path") if tool == "Read" else None

        config = ctx.config.read
        if predicates.read_blocked_path(path, config):
            return self.deny("blocked_path")
        if predicates.read_blocked_extension(path, config):
            return self.deny("blocked_extension")
        if predicates.is_sensitive_path(path):
            return self.deny("sensitive_file")
        if predicates.read_warns_secrets(path, config):
            return self.context(warn="may_contain_secrets")
        if predicates.is_large_file(path):
            return self.context(warn="large_file")
        return None


class CeoGate(AgentGate):
    """Task delegation must name a known agent."""

    name = "CEO"

    def check(self, ctx: GateContext) -> Verdict | None:
        if ctx.event.tool_name != "Task":
            return None
        verdict = super().check(ctx)
        if verdict:
            return verdict
        return orchestration_context(
            "CEO_ORCHESTRATION", ctx.event.get_string("subagent_type"), after_task=True
        )


class SkillGate(Gate):
    name = "SKILL"

    def check(self, ctx: GateContext) -> Verdict | None:
        if ctx.event.tool_name != "Skill":
            return None
        skill = ctx.event.get_string("skill")
        if not skill:
            return self.deny("no_skill_name")
        return self.context(skill=skill.lower(), status="routed")


class FetchContentGate(ContentGate):
    """Secret scan of content handed to WebFetch."""

    def check(self, ctx: GateContext) -> Verdict | None:
        if ctx.event.tool_name != "WebFetch":
            return None
        return super().check(ctx)


class TaskGate(Gate):
    """Required fields of the task-tracking tools."""

    name = "TASK_GATE"

    REQUIRED = {
        "TaskCreate": ("subject", "description"),
        "TaskUpdate": ("taskId",),
        "TaskGet": ("taskId",),
        "TaskOutput": ("task_id",),
    }

    def check(self, ctx: GateContext) -> Verdict | None:
        tool = ctx.event.tool_name
        required = self.REQUIRED.get(tool)
        if required is None:
            return None
        for field in required:
            if not ctx.event.get_string(field):
                return self.deny(f"{tool}:missing_{field}")
        if tool == "TaskUpdate":
            status = ctx.event.get_string("status")
            if status and status not in VALID_TASK_STATUSES:
                return self.deny(f"TaskUpdate:invalid_status:{status}")
        return None


PRE_TOOL_CHAIN: tuple[Gate, ...] = (
    BashGate(),
    RustCliGate(),
    BashWarnGate(),
    ReadGate(),
    CeoGate(),
    SkillGate(),
    FetchContentGate(),
    TaskGate(),
)
