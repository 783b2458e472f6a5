"""
Session-lifecycle chain: SessionStart, PreCompact, Stop and SessionEnd.
"""

from tollgate.gates.base import Gate, GateContext
from tollgate.schema import Verdict
from tollgate.session import lifecycle


class LifecycleGate(Gate):
    """Inject the session report that matches the host event."""

    name = "SESSION"

    def check(self, ctx: GateContext) -> Verdict | None:
        event_name = ctx.event.hook_event_name
        record = ctx.session
        if event_name == "SessionStart":
            docs = lifecycle.count_memory_docs(lifecycle.memory_dir(ctx.store))
            text = lifecycle.render_init(record, docs)
        elif event_name == "PreCompact":
            text = lifecycle.render_compact(record)
        elif event_name in ("Stop", "SessionEnd"):
            text = lifecycle.render_end(record)
        else:
            return None
        ctx.commit()
        return Verdict.context(self.name, text=text)


LIFECYCLE_CHAIN: tuple[Gate, ...] = (LifecycleGate(),)
