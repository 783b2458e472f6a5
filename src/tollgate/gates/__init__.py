"""
Gate chains for Tollgate.

One ordered tuple of gates per event category. The first gate that returns
a verdict decides; a chain that finishes without a decision allows silently.
"""

from tollgate.gates.base import Gate, GateContext, run_chain
from tollgate.gates.lifecycle import LIFECYCLE_CHAIN
from tollgate.gates.posttool import POST_TOOL_CHAIN
from tollgate.gates.postwrite import POST_WRITE_CHAIN
from tollgate.gates.pretool import PRE_TOOL_CHAIN
from tollgate.gates.prewrite import PRE_WRITE_CHAIN
from tollgate.gates.prompt import PROMPT_CHAIN
from tollgate.gates.subagent import SUBAGENT_CHAIN
from tollgate.schema import EventCategory

CHAINS: dict[EventCategory, tuple[Gate, ...]] = {
    EventCategory.PROMPT_SUBMIT: PROMPT_CHAIN,
    EventCategory.PRE_TOOL: PRE_TOOL_CHAIN,
    EventCategory.POST_TOOL: POST_TOOL_CHAIN,
    EventCategory.PRE_WRITE: PRE_WRITE_CHAIN,
    EventCategory.POST_WRITE: POST_WRITE_CHAIN,
    EventCategory.SUBAGENT_INVOKE: SUBAGENT_CHAIN,
    EventCategory.SESSION_LIFECYCLE: LIFECYCLE_CHAIN,
}

__all__ = ["CHAINS", "Gate", "GateContext", "run_chain"]
