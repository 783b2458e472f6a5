"""
Anti-production rule table.

Rules flag code that should not ship: mock data, debug output, swallowed
errors and loosened types. The table is ordered by level, P0 first, and the
first matching rule wins.

Levels:
    P0 MOCK_DATA   Hardcoded or fake data
    P1 PROD_LEAK   Debug output, local URLs, unpinned images, unsafe calls
    P2 ERROR_BLIND Swallowed or ignored errors
    P3 TYPE_LOOSE  Suppressed type or lint checks

A subset of rules is marked `pre`: those are also checked before a write
lands, where only cheap, unambiguous signals are worth a deny.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from tollgate.policy import predicates as p

P0, P1, P2, P3 = 0, 1, 2, 3

MOCK_MESSAGE = "Replace hardcoded data with a real data source."


def _any_file(path: str) -> bool:
    return True


def _not_base(*names: str) -> Callable[[str, str], bool]:
    def check(path: str, content: str) -> bool:
        return p.basename(path).lower() not in names
    return check


def _lacks(*fragments: str) -> Callable[[str, str], bool]:
    def check(path: str, content: str) -> bool:
        return not any(f in content for f in fragments)
    return check


@dataclass(frozen=True)
class AntiProdRule:
    """
    One anti-production rule.

    Attributes:
        level: P0..P3, lower runs first
        code: MOCK_DATA, PROD_LEAK, ERROR_BLIND or TYPE_LOOSE
        label: Short name of what matched
        regex: Pattern searched in the written content
        applies: File-kind predicate over the path
        message: Advice shown with the deny
        when: Extra condition over (path, content)
        absent: Fire when the pattern is missing rather than present
        pre: Also enforced before the write
    """

    level: int
    code: str
    label: str
    regex: re.Pattern[str]
    applies: Callable[[str], bool]
    message: str
    when: Callable[[str, str], bool] | None = None
    absent: bool = False
    pre: bool = False

    @property
    def reason(self) -> str:
        return f"{self.code}:{self.label}:{self.message}"

    def matches(self, path: str, content: str) -> bool:
        if not self.applies(path):
            return False
        found = self.regex.search(content) is not None
        if found == self.absent:
            return False
        return self.when is None or self.when(path, content)


def _rule(level, code, label, pattern, applies, message, flags=0, **kw) -> AntiProdRule:
    return AntiProdRule(level, code, label, re.compile(pattern, flags), applies, message, **kw)


_M = re.MULTILINE
_I = re.IGNORECASE

RULES: tuple[AntiProdRule, ...] = (
    # P0: mock data
    _rule(P0, "MOCK_DATA", "frontend_mock_const",
          r"\bconst\s+(?:mock|dummy|fake|sample|placeholder)\w*\s*[=:]",
          p.is_frontend_file, MOCK_MESSAGE, _I),
    _rule(P0, "MOCK_DATA", "frontend_hardcoded_array",
          r"\[\s*\{[^}]*\bid\s*:.*?\}\s*,\s*\{[^}]*\bid\s*:.*?\}\s*,\s*\{[^}]*\bid\s*:",
          p.is_frontend_file, MOCK_MESSAGE, re.DOTALL),
    _rule(P0, "MOCK_DATA", "frontend_useState_hardcoded_array",
          r"useState\(\s*\[\s*\{", p.is_frontend_file, MOCK_MESSAGE),
    _rule(P0, "MOCK_DATA", "frontend_fake_engagement",
          r"(?:likes|followers|posts|views|subscribers)\s*:\s*\d{3,}",
          p.is_frontend_file, MOCK_MESSAGE, _I),
    _rule(P0, "MOCK_DATA", "frontend_fake_name",
          r"['\"](?:Sarah Johnson|John Smith|Jane Doe|Bob Wilson|Mary Williams)['\"]",
          p.is_frontend_file, MOCK_MESSAGE, _I),
    _rule(P0, "MOCK_DATA", "backend_hardcoded_json_vec",
          r"vec!\s*\[\s*(?:serde_json::)?json!\s*\(", p.is_backend_file, MOCK_MESSAGE),
    _rule(P0, "MOCK_DATA", "backend_null_as_distance",
          r"NULL\s+as\s+distance", p.is_backend_file, MOCK_MESSAGE, _I),
    _rule(P0, "MOCK_DATA", "backend_todo_unimplemented",
          r"\b(?:todo|unimplemented)!\s*\(", p.is_backend_file,
          "Implement before shipping; todo!/unimplemented! panic at runtime.",
          when=_lacks("#[test]", "#[cfg(test)]")),

    # P1: production leaks
    _rule(P1, "PROD_LEAK", "println!", r"\b(?:println|eprintln)!\s*\(", p.is_rust_file,
          "Write to a locked stdout handle or use tracing.",
          when=_not_base("main.rs", "hook.rs"), pre=True),
    _rule(P1, "PROD_LEAK", "dbg!", r"\bdbg!\s*\(", p.is_rust_file,
          "Remove; runs in release builds. Use tracing::debug!.", pre=True),
    _rule(P1, "PROD_LEAK", "panic!", r"\bpanic!\s*\(", p.is_rust_file,
          "Return Result/Option instead.", when=_not_base("main.rs")),
    _rule(P1, "PROD_LEAK", "unsafe block", r"\bunsafe\s*\{", p.is_rust_file,
          "Justify with // SAFETY: comment or remove.",
          when=_lacks("// SAFETY:"), pre=True),
    _rule(P1, "PROD_LEAK", "console.log", r"\bconsole\.(?:log|debug)\s*\(", p.is_frontend_file,
          "Remove debug output or use a structured logger."),
    _rule(P1, "PROD_LEAK", "debugger", r"^\s*debugger\s*;?\s*$", p.is_frontend_file,
          "Remove debugger statements before shipping.", _M, pre=True),
    _rule(P1, "PROD_LEAK", "dangerouslySetInnerHTML", r"dangerouslySetInnerHTML",
          p.is_frontend_file, "Sanitize or render as text."),
    _rule(P1, "PROD_LEAK", "TODO/FIXME", r"(?://|#|/\*|<!--)\s*(?:TODO|FIXME)\b", p.is_source_file,
          "Implement or create ticket.", _I, pre=True),
    _rule(P1, "PROD_LEAK", "localhost", r"https?://localhost\b", p.is_non_config_file,
          "Use config/environment variable for URLs."),
    _rule(P1, "PROD_LEAK", "print()", r"\bprint\s*\(", p.is_python_file,
          "Use logging instead of print()."),
    _rule(P1, "PROD_LEAK", "pdb/breakpoint", r"\bimport\s+pdb\b|\bpdb\.set_trace\s*\(|\bbreakpoint\s*\(",
          p.is_python_file, "Remove debug statements before shipping.", pre=True),
    _rule(P1, "PROD_LEAK", "eval()/exec()", r"\b(?:eval|exec)\s*\(", p.is_python_file,
          "Code injection risk. Use ast.literal_eval() or a parser."),
    _rule(P1, "PROD_LEAK", "os.system()", r"\bos\.system\s*\(", p.is_python_file,
          "Shell injection risk. Use subprocess.run() without a shell."),
    _rule(P1, "PROD_LEAK", "pickle.load()", r"\bpickle\.loads?\s*\(", p.is_python_file,
          "Arbitrary code execution risk. Use JSON or a safe serializer."),
    _rule(P1, "PROD_LEAK", "yaml.load() without SafeLoader", r"\byaml\.load\s*\(", p.is_python_file,
          "Use yaml.safe_load().", when=_lacks("SafeLoader", "safe_load")),
    _rule(P1, "PROD_LEAK", "fmt.Print", r"\bfmt\.Print(?:f|ln)?\s*\(", p.is_go_file,
          "Use a structured logger instead of fmt.Print."),
    _rule(P1, "PROD_LEAK", "os.Exit outside main", r"\bos\.Exit\s*\(", p.is_go_file,
          "Return an error; only main() should exit.", when=_not_base("main.go")),
    _rule(P1, "PROD_LEAK", "System.out.print", r"System\.out\.print", p.is_java_file,
          "Use a logger instead of System.out."),
    _rule(P1, "PROD_LEAK", "FROM :latest", r"^FROM\s+\S+:latest\b", p.is_dockerfile,
          "Pin image version.", _M | _I),
    _rule(P1, "PROD_LEAK", "no USER directive", r"^USER\s+", p.is_dockerfile,
          "Container runs as root. Add a USER directive.", _M | _I, absent=True),
    _rule(P1, "PROD_LEAK", "chmod 777", r"chmod\s+777", _any_file,
          "Use least-privilege permissions."),
    _rule(P1, "PROD_LEAK", "curl|sh", r"(?:curl|wget)\s+[^|\n]*\|\s*(?:ba)?sh\b",
          lambda path: p.is_dockerfile(path) or p.is_shell_file(path),
          "Download and verify before piping to a shell."),

    # P2: swallowed errors
    _rule(P2, "ERROR_BLIND", ".unwrap() in handler", r"\.unwrap\(\)",
          lambda path: p.is_rust_file(path) and p.is_handler_file(path),
          "Use ? instead of .unwrap() in handlers."),
    _rule(P2, "ERROR_BLIND", ".catch(() => {})", r"\.catch\s*\(\s*(?:\(\s*\)|_)\s*=>\s*\{\s*\}\s*\)",
          p.is_frontend_file, "Handle errors: log, show feedback, or re-throw."),
    _rule(P2, "ERROR_BLIND", "bare except / except pass",
          r"^\s*except\s*:|^\s*except\b[^\n]*:\s*\n\s*pass\s*$", p.is_python_file,
          "Handle errors explicitly.", _M),
    _rule(P2, "ERROR_BLIND", "assert in production code", r"^\s*assert\s", p.is_python_file,
          "assert is stripped by python -O. Raise instead.", _M),
    _rule(P2, "ERROR_BLIND", "panic()", r"\bpanic\s*\(", p.is_go_file,
          "Return error instead of panic.", when=_not_base("main.go")),
    _rule(P2, "ERROR_BLIND", "_ = (error discarded)", r"\b_\s*=\s*\w+\.\w+\(", p.is_go_file,
          "Handle the error instead of discarding it."),
    _rule(P2, "ERROR_BLIND", "defer in loop", r"for\s.*\{[^}]*defer\s", p.is_go_file,
          "Extract the loop body to a function."),
    _rule(P2, "ERROR_BLIND", "empty catch block", r"catch\s*\([^)]*\)\s*\{\s*\}", p.is_java_file,
          "Handle the exception."),
    _rule(P2, "ERROR_BLIND", "ADD instead of COPY", r"^ADD\s+", p.is_dockerfile,
          "Use COPY; ADD can fetch URLs and extract archives.", _M | _I),

    # P3: loosened types
    _rule(P3, "TYPE_LOOSE", "as any", r"\bas\s+any\b", p.is_frontend_file,
          "Use proper type narrowing."),
    _rule(P3, "TYPE_LOOSE", "@ts-ignore", r"@ts-ignore|@ts-nocheck", p.is_frontend_file,
          "Fix the type error instead of suppressing it."),
    _rule(P3, "TYPE_LOOSE", "eslint-disable", r"eslint-disable", p.is_frontend_file,
          "Fix the lint error instead of disabling the rule."),
    _rule(P3, "TYPE_LOOSE", "#[allow(dead_code)]", r"#\[allow\(dead_code\)\]", p.is_rust_file,
          "Remove dead code instead of suppressing."),
    _rule(P3, "TYPE_LOOSE", "#[allow(unused)]", r"#\[allow\(unused", p.is_rust_file,
          "Remove unused code instead of suppressing."),
    _rule(P3, "TYPE_LOOSE", "type: ignore", r"#\s*type:\s*ignore", p.is_python_file,
          "Fix the annotation instead of ignoring it."),
    _rule(P3, "TYPE_LOOSE", "noqa", r"#\s*noqa", p.is_python_file,
          "Fix the lint issue instead of suppressing it."),
    _rule(P3, "TYPE_LOOSE", "nolint", r"//\s*nolint", p.is_go_file,
          "Fix the lint issue instead of suppressing it."),
    _rule(P3, "TYPE_LOOSE", "@SuppressWarnings", r"@SuppressWarnings", p.is_java_file,
          "Fix the warning instead of suppressing it."),
)

PRE_RULES = tuple(rule for rule in RULES if rule.pre)


def scan(path: str, content: str, pre: bool = False) -> AntiProdRule | None:
    """
    Return the first rule the content violates.

    Args:
        path: Target file path (drives file-kind filtering and the allowlist)
        content: Text being written
        pre: Only check the pre-write subset

    Returns:
        The violated rule, or None
    """
    if not path or not content or p.is_allowlisted(path):
        return None
    for rule in PRE_RULES if pre else RULES:
        if rule.matches(path, content):
            return rule
    return None
