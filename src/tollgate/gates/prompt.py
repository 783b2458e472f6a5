"""
Prompt-submit chain: the intent classification cascade.

    Tier 0  greetings and acknowledgements pass silently
    Tier 1  status questions get a short directive, no state is touched
    Tier 2  turn bookkeeping, post-compaction recovery, periodic reinforcement
    Tier 3  keyword classification and the routing directive

Tiers 2 and 3 share one context; their blocks are joined by a blank line.
"""

from tollgate.gates.base import Gate, GateContext
from tollgate.intent import (
    classify,
    intent_directive,
    is_status_query,
    is_trivial,
    normalize,
    recovery_block,
    reinforce_block,
    status_directive,
)
from tollgate.schema import Verdict


class TrivialPromptGate(Gate):
    """Empty prompts, greetings, or classification switched off."""

    name = "INTENT"

    def check(self, ctx: GateContext) -> Verdict | None:
        prompt = normalize(ctx.event.get_prompt())
        if not prompt or not ctx.config.intent.enabled or is_trivial(prompt):
            return Verdict.silent()
        return None


class StatusPromptGate(Gate):
    name = "BINARY_FIRST"

    def check(self, ctx: GateContext) -> Verdict | None:
        if is_status_query(ctx.event.get_prompt()):
            return Verdict.context(self.name, text=status_directive())
        return None


class IntentCascadeGate(Gate):
    """Tiers 2 and 3; always decides."""

    name = "INTENT"

    def check(self, ctx: GateContext) -> Verdict | None:
        session = ctx.session
        today = ctx.today
        session.increment_turn()
        session.reset_research_for_new_prompt()

        blocks: list[str] = []
        if session.post_compact:
            blocks.append(recovery_block(session.turn_count, today))
            session.clear_post_compact()
            session.mark_reinforcement_done()
        elif session.needs_reinforcement():
            blocks.append(reinforce_block(session.turn_count, today))
            session.mark_reinforcement_done()

        intent = classify(ctx.event.get_prompt())
        if intent.classified:
            session.mark_nlu_parsed()
            session.store_intent(
                intent.intent_type, intent.domain, intent.sub_agents, intent.skills
            )
            blocks.append(
                intent_directive(intent, today, session.research_done, session.training_cutoff)
            )

        ctx.commit()
        if not blocks:
            return Verdict.silent()
        return Verdict.context(self.name, text="\n\n".join(blocks))


PROMPT_CHAIN: tuple[Gate, ...] = (
    TrivialPromptGate(),
    StatusPromptGate(),
    IntentCascadeGate(),
)
