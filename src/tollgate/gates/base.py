"""
Gate contract and chain runner.

A gate looks at one event and either decides (returns a Verdict) or passes
(returns None). A chain is a static tuple of gates; the runner stops at the
first decision and falls back to a silent allow. Order within a chain is
part of the observable behaviour.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from loguru import logger

from tollgate.schema import GatesConfig, HookEvent, Verdict, VerdictKind
from tollgate.session import SessionRecord, SessionStore


class GateContext:
    """
    Everything a gate may look at while deciding one event.

    The session record is loaded on first access so chains that never touch
    state never read the state file.

    Attributes:
        event: The event being decided
        config: Gate configuration for this invocation
        store: Session storage
        notes: Non-blocking findings collected along the chain (e.g. lint)
    """

    def __init__(self, event: HookEvent, config: GatesConfig, store: SessionStore) -> None:
        self.event = event
        self.config = config
        self.store = store
        self.notes: list[str] = []
        self._session: SessionRecord | None = None

    @property
    def session(self) -> SessionRecord:
        if self._session is None:
            self._session = self.store.load_or_create()
        return self._session

    @property
    def session_loaded(self) -> bool:
        return self._session is not None

    @property
    def today(self) -> str:
        return self.store.today()

    @property
    def work_dir(self) -> str:
        return str(self.store.cwd())

    def commit(self) -> bool:
        """Persist the session record if it was loaded; failures are logged."""
        if self._session is None:
            return False
        return self.store.commit(self._session)


class Gate(ABC):
    """
    One named check in a chain.

    Subclasses set `name` (the string reported in verdicts) and implement
    check().
    """

    name: str = ""

    @abstractmethod
    def check(self, ctx: GateContext) -> Verdict | None:
        """Return a verdict to stop the chain, or None to continue."""

    def deny(self, reason: str) -> Verdict:
        return Verdict.deny(self.name, reason)

    def context(self, **items: str) -> Verdict:
        return Verdict.context(self.name, items)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


def run_chain(gates: Sequence[Gate], ctx: GateContext) -> Verdict:
    """
    Run gates in order until one decides.

    Returns:
        The first non-None verdict, or a silent allow
    """
    for gate in gates:
        verdict = gate.check(ctx)
        if verdict is None:
            continue
        if verdict.kind == VerdictKind.DENY:
            logger.info(f"{gate.name} denied {ctx.event.tool_name or 'event'}: {verdict.reason}")
        else:
            logger.debug(f"{gate.name} decided {verdict.kind.value}")
        return verdict
    return Verdict.silent()
