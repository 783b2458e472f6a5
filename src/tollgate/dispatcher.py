"""
Event dispatcher for Tollgate.

The dispatcher is the single entry point of a hook call:

    1. Parse the event (a malformed event becomes an empty one)
    2. Resolve its category (explicit, or from hook event and tool name)
    3. Run the category's chain, holding the session lock if it writes state
    4. Write exactly one response line

No exception escapes a dispatch. Anything unexpected is logged with its
traceback and degrades to a silent allow carrying a `degraded:<Type>` note.
"""

import sys
from typing import TextIO

from loguru import logger

from tollgate.errors import EventParseError
from tollgate.gates import CHAINS, GateContext, run_chain
from tollgate.protocol import write_verdict
from tollgate.schema import WRITE_TOOLS, EventCategory, GatesConfig, HookEvent, Verdict, parse_event
from tollgate.session import SessionStore

# Categories whose chains read-modify-write the session record
MUTATING_CATEGORIES = frozenset({
    EventCategory.PROMPT_SUBMIT,
    EventCategory.POST_TOOL,
    EventCategory.POST_WRITE,
    EventCategory.SUBAGENT_INVOKE,
    EventCategory.SESSION_LIFECYCLE,
})

LIFECYCLE_EVENTS = frozenset({"SessionStart", "PreCompact", "Stop", "SessionEnd"})


def resolve_category(event: HookEvent) -> EventCategory | None:
    """
    Category of an event from its host event name and tool name.

    Returns:
        The category, or None when the event does not map to any chain
    """
    if event.category is not None:
        return event.category
    name = event.hook_event_name
    if name == "UserPromptSubmit":
        return EventCategory.PROMPT_SUBMIT
    if name == "PreToolUse":
        return EventCategory.PRE_WRITE if event.tool_name in WRITE_TOOLS else EventCategory.PRE_TOOL
    if name == "PostToolUse":
        return EventCategory.POST_WRITE if event.tool_name in WRITE_TOOLS else EventCategory.POST_TOOL
    if name == "SubagentStart":
        return EventCategory.SUBAGENT_INVOKE
    if name in LIFECYCLE_EVENTS:
        return EventCategory.SESSION_LIFECYCLE
    return None


class Dispatcher:
    """
    Decide hook events and write responses.

    Usage:
        dispatcher = Dispatcher(config, SessionStore())
        dispatcher.dispatch(sys.stdin.read(), EventCategory.PRE_TOOL)

    Attributes:
        config: Gate configuration, passed to every gate
        store: Session storage
        stream: Where the response line is written
    """

    def __init__(
        self,
        config: GatesConfig,
        store: SessionStore,
        stream: TextIO | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.stream = stream or sys.stdout

    def decide(self, event: HookEvent, category: EventCategory | None) -> Verdict:
        """Run the chain for a category; never raises."""
        if category is None:
            return Verdict.silent()
        try:
            ctx = GateContext(event.with_category(category), self.config, self.store)
            chain = CHAINS[category]
            if category in MUTATING_CATEGORIES:
                with self.store.lock():
                    return run_chain(chain, ctx)
            return run_chain(chain, ctx)
        except Exception as e:
            logger.opt(exception=e).error(
                f"Gate chain {category.value} failed; allowing silently"
            )
            return Verdict.silent(note=f"degraded:{type(e).__name__}")

    def dispatch(self, raw: str, category: EventCategory | None = None) -> Verdict:
        """
        Handle one raw hook payload end to end.

        Args:
            raw: Text read from stdin
            category: Explicit category from the CLI; resolved automatically if None

        Returns:
            The verdict that was written
        """
        try:
            event = parse_event(raw)
        except EventParseError as e:
            logger.warning(e.message)
            event = HookEvent()

        if category is None:
            category = resolve_category(event)
        verdict = self.decide(event, category)
        write_verdict(verdict, category, self.stream, self.store.today(), event.hook_event_name)
        return verdict
