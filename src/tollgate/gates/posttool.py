"""
Post-tool chain: bookkeeping after non-write tools.

Research tools mark research done, task tools keep the active task and
counters current, and a finished delegation is acknowledged.
"""

from tollgate.gates.base import Gate, GateContext
from tollgate.schema import Verdict


class ResearchGate(Gate):
    """WebSearch/WebFetch count as research for the current prompt."""

    name = "RESEARCH"

    def check(self, ctx: GateContext) -> Verdict | None:
        tool = ctx.event.tool_name
        if tool not in ("WebSearch", "WebFetch"):
            return None
        topic = ctx.event.get_string("query" if tool == "WebSearch" else "url")
        ctx.session.mark_research_done(topic)
        ctx.commit()
        return None


class TaskTrackingGate(Gate):
    name = "TASK"

    def check(self, ctx: GateContext) -> Verdict | None:
        tool = ctx.event.tool_name
        if tool == "TaskCreate":
            session = ctx.session
            session.tasks_created += 1
            session.set_current_task(ctx.event.get_string("subject"))
            ctx.commit()
        elif tool == "TaskUpdate":
            status = ctx.event.get_string("status")
            subject = ctx.event.get_string("subject")
            if status in ("completed", "deleted"):
                ctx.session.tasks_completed += 1
                ctx.session.clear_task()
                ctx.commit()
            elif status == "in_progress" and subject:
                ctx.session.set_current_task(subject)
                ctx.commit()
        return None


class AgentCompleteGate(Gate):
    name = "AGENT_COMPLETE"

    def check(self, ctx: GateContext) -> Verdict | None:
        if ctx.event.tool_name != "Task":
            return None
        agent = ctx.event.get_string("subagent_type")
        if not agent:
            return None
        return self.context(agent=agent, status="completed")


POST_TOOL_CHAIN: tuple[Gate, ...] = (
    ResearchGate(),
    TaskTrackingGate(),
    AgentCompleteGate(),
)
