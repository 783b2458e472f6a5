"""
Gates shared by more than one chain.
"""

from tollgate.gates.base import Gate, GateContext
from tollgate.policy.predicates import find_secret, is_engineer, is_valid_agent
from tollgate.schema import Verdict
from tollgate.session.record import DEFAULT_CUTOFF


class ContentGate(Gate):
    """Deny content that carries credentials or private keys."""

    name = "CONTENT"

    def check(self, ctx: GateContext) -> Verdict | None:
        secret = find_secret(ctx.event.get_write_content())
        if secret:
            return self.deny(f"sensitive:{secret}")
        return None


class AgentGate(Gate):
    """
    Validate the sub-agent named by a delegation.

    Used for Task pre-tool events (as CEO) and for sub-agent start events
    (as SUBAGENT); the subclasses add their own orchestration context.
    """

    def check(self, ctx: GateContext) -> Verdict | None:
        agent = ctx.event.get_string("subagent_type")
        if not agent:
            return self.deny("Task_requires_subagent_type")
        if not is_valid_agent(agent):
            return self.deny(f"unknown_agent:{agent}")
        return None


def orchestration_context(gate: str, agent: str, after_task: bool) -> Verdict | None:
    """Context reminding the orchestrator how engineer work is verified."""
    if not is_engineer(agent):
        return None
    items = {
        "agent": agent,
        "cutoff": DEFAULT_CUTOFF,
        "CEO_FLOW": "DELEGATE->VERIFY->AEGIS",
    }
    if after_task:
        items["AFTER_TASK"] = "Verify result meets requirements"
    return Verdict.context(gate, items)
