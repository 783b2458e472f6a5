"""
Post-write chain: runs after a write tool finished.

Order: ANTIPROD (P0..P3) -> DACE -> LINT -> CONTEXT
"""

from tollgate.gates.base import Gate, GateContext
from tollgate.policy import antiprod
from tollgate.policy.predicates import is_code_file, is_go_file, is_python_file, path_depth
from tollgate.schema import Verdict


class AntiProdGate(Gate):
    """Full anti-production table, first hit in level order denies."""

    name = "ANTIPROD"

    def check(self, ctx: GateContext) -> Verdict | None:
        rule = antiprod.scan(ctx.event.get_file_path(), ctx.event.get_write_content())
        if rule:
            return self.deny(rule.reason)
        return None


class DaceGate(Gate):
    """Folder depth and chunk size budgets for source files."""

    name = "DACE"

    def check(self, ctx: GateContext) -> Verdict | None:
        path = ctx.event.get_file_path()
        content = ctx.event.get_write_content()
        if not path or not content or not is_code_file(path):
            return None

        quality = ctx.config.quality
        depth = path_depth(path, ctx.work_dir)
        if depth is not None and depth > quality.max_depth:
            return self.deny(f"folder_depth_exceeds_{quality.max_depth}:{depth}")

        lines = len(content.splitlines())
        if lines > quality.max_lines:
            return self.deny(f"exceeds_{quality.max_lines}_lines:{lines}")
        return None


class LintGate(Gate):
    """Collect style warnings without deciding."""

    name = "LINT"

    def check(self, ctx: GateContext) -> Verdict | None:
        path = ctx.event.get_file_path()
        content = ctx.event.get_write_content()
        if not path or not content:
            return None
        warnings = lint_warnings(path, content)
        ctx.notes.extend(warnings[: ctx.config.quality.max_lint_warnings])
        return None


class ContextGate(Gate):
    """Track the modified file and surface any lint warnings."""

    name = "CONTEXT"

    def check(self, ctx: GateContext) -> Verdict | None:
        path = ctx.event.get_file_path()
        if path:
            ctx.session.add_file_modified(path)
            ctx.commit()
        if ctx.notes:
            return Verdict.context("LINT", {"warnings": ",".join(ctx.notes)})
        return None


def lint_warnings(path: str, content: str) -> list[str]:
    """Whitespace problems as `kind:line` strings, in line order per kind."""
    lines = content.splitlines()
    warnings = [
        f"trailing_ws:{n}" for n, line in enumerate(lines, 1)
        if line.endswith((" ", "\t"))
    ]
    if is_go_file(path):
        warnings += [
            f"spaces:{n}" for n, line in enumerate(lines, 1)
            if line.startswith("    ")
        ]
    if is_python_file(path):
        warnings += [
            f"mixed_indent:{n}" for n, line in enumerate(lines, 1)
            if _mixed_indent(line)
        ]
    return warnings


def _mixed_indent(line: str) -> bool:
    indent = line[: len(line) - len(line.lstrip(" \t"))]
    return " " in indent and "\t" in indent


POST_WRITE_CHAIN: tuple[Gate, ...] = (
    AntiProdGate(),
    DaceGate(),
    LintGate(),
    ContextGate(),
)
