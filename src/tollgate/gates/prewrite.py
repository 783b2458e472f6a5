"""
Pre-write chain: runs before Write, Edit, MultiEdit and NotebookEdit land.

Order: CONTENT -> CODE_GUARD -> ANTIPROD (pre subset) -> TABULA_RASA -> ENFORCER
"""

from tollgate.gates.base import Gate, GateContext
from tollgate.gates.common import ContentGate
from tollgate.policy import antiprod
from tollgate.policy.predicates import (
    has_stub_markers,
    is_code_file,
    removed_block_keyword,
    removed_definitions,
    write_blocked_path,
)
from tollgate.schema import Verdict

# Deleting less than this many characters is never treated as removing code
SIGNIFICANT_DELETION = 50


class CodeGuardGate(Gate):
    """
    Stop edits that throw away working code.

    Only Edit and MultiEdit on source files are checked. Each edit pair is
    checked for complete deletion, a large shrink that drops named
    definitions, a stub removed without a real implementation, and removal
    of a whole impl/class/struct/interface block.
    """

    name = "CODE_GUARD"

    def check(self, ctx: GateContext) -> Verdict | None:
        event = ctx.event
        if event.tool_name not in ("Edit", "MultiEdit"):
            return None
        path = event.get_file_path()
        if not is_code_file(path):
            return None
        for old, new in event.get_edit_pairs():
            verdict = self._check_pair(path, old, new)
            if verdict:
                return verdict
        return None

    def _check_pair(self, path: str, old: str, new: str) -> Verdict | None:
        if not new.strip() and len(old) > SIGNIFICANT_DELETION:
            return self.deny(
                f"BLOCK_REMOVAL:complete_deletion:file:{path}"
                ":REASON:Cannot delete significant code block."
            )

        if old and len(new) < len(old) // 2:
            removed = removed_definitions(old, new)
            if removed:
                return self.deny(
                    f"BLOCK_REMOVAL:significant_code_reduction:functions:{','.join(removed)}"
                    ":REASON:Verify use case before removing functions."
                )

        if has_stub_markers(old) and not has_stub_markers(new) and len(new) <= len(old):
            return self.deny(
                f"BLOCK_REMOVAL:stub_removed_without_implementation:file:{path}"
                ":REASON:stub removed but code not expanded."
            )

        keyword = removed_block_keyword(old, new)
        if keyword:
            return self.deny(
                f"BLOCK_REMOVAL:{keyword}_block:file:{path}"
                f":REASON:Cannot remove {keyword} block without understanding what depends on it."
            )
        return None


class AntiProdPreGate(Gate):
    """Cheap anti-production checks before the write lands."""

    name = "ANTIPROD"

    def check(self, ctx: GateContext) -> Verdict | None:
        rule = antiprod.scan(ctx.event.get_file_path(), ctx.event.get_write_content(), pre=True)
        if rule:
            return self.deny(rule.reason)
        return None


class TabulaRasaGate(Gate):
    """Source code may only be written after research happened this turn."""

    name = "TABULA_RASA"

    def check(self, ctx: GateContext) -> Verdict | None:
        path = ctx.event.get_file_path()
        if not path or not is_code_file(path):
            return None
        if ctx.session.research_done:
            return None
        return self.deny("WebSearch_required_before_code")


class EnforcerGate(Gate):
    """Configured write-protected path fragments."""

    name = "ENFORCER"

    def check(self, ctx: GateContext) -> Verdict | None:
        path = ctx.event.get_file_path()
        if path and write_blocked_path(path, ctx.config.write):
            return self.deny(f"Write:blocked_path:{path}")
        return None


PRE_WRITE_CHAIN: tuple[Gate, ...] = (
    ContentGate(),
    CodeGuardGate(),
    AntiProdPreGate(),
    TabulaRasaGate(),
    EnforcerGate(),
)
