"""
Sub-agent chain: runs when a delegated agent starts.
"""

from tollgate.gates.base import Gate, GateContext
from tollgate.gates.common import AgentGate, orchestration_context
from tollgate.schema import Verdict

MAX_PROMPT_CHARS = 8000


class SubagentGate(AgentGate):
    """
    Validate the agent, warn on oversized prompts, and record that
    delegation happened.
    """

    name = "SUBAGENT"

    def check(self, ctx: GateContext) -> Verdict | None:
        verdict = super().check(ctx)
        if verdict:
            return verdict

        prompt = ctx.event.get_string("prompt")
        if len(prompt) > MAX_PROMPT_CHARS:
            return self.context(warn=f"prompt_length:{len(prompt)}")

        ctx.session.mark_ceo_invoked()
        ctx.commit()
        return orchestration_context(
            "SUBAGENT_ORCHESTRATION", ctx.event.get_string("subagent_type"), after_task=False
        )


SUBAGENT_CHAIN: tuple[Gate, ...] = (SubagentGate(),)
