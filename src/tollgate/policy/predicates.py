"""
Stateless policy predicates.

Every chain that needs to classify a path, a shell command, an agent name or
a chunk of content asks this module. All string matching is case-insensitive
unless stated otherwise.

Predicates that cannot decide (empty input, unresolvable path) answer
"no information" (False or None) and never deny by themselves.
"""

import re
from typing import NamedTuple

from tollgate.schema import BashConfig, ReadConfig, WriteConfig

# =============================================================================
# Tables
# =============================================================================

# Destructive, remote-code, DoS and anti-forensics command fragments
BLOCKED_SHELL_PATTERNS = (
    "rm -rf /",
    "rm -rf /*",
    "rm -rf ~",
    "> /etc/passwd",
    "> /etc/shadow",
    "dd if=/dev/zero",
    "dd if=/dev/random",
    "mkfs.",
    "fdisk",
    "parted",
    "shutdown",
    "reboot",
    "init 0",
    "init 6",
    "poweroff",
    "halt",
    "| bash",
    "| sh",
    "|bash",
    "|sh",
    "| /bin/bash",
    "| /bin/sh",
    ":()",
    ":(){",
    "chown -r",
    "nc -e",
    "ncat -e",
    "history -c",
    "export histsize=0",
    "insmod",
    "rmmod",
    "modprobe -r",
)

SENSITIVE_PATH_PATTERNS = (".env", "credentials", "secret", "private_key")

LARGE_FILE_EXTENSIONS = (".log", ".csv", ".sql")


class LegacyCommand(NamedTuple):
    """A legacy CLI tool and its preferred replacement."""

    legacy: str
    replacement: str
    reason: str


LEGACY_COMMANDS = {
    "ls": LegacyCommand("ls", "eza", "icons + git status + tree"),
    "cat": LegacyCommand("cat", "bat", "syntax highlighting + paging"),
    "find": LegacyCommand("find", "fd", "faster + regex + .gitignore aware"),
    "grep": LegacyCommand("grep", "rg", "faster + respects .gitignore"),
    "du": LegacyCommand("du", "dust", "visual + sorted output"),
    "top": LegacyCommand("top", "btm", "modern process viewer"),
    "ps": LegacyCommand("ps", "procs", "colorized + tree view"),
    "sed": LegacyCommand("sed", "sd", "simpler regex syntax"),
}

LEGACY_ALLOWED = frozenset({
    "eza", "bat", "fd", "rg", "dust", "btm", "procs", "sd",
    "cargo", "go", "git", "npm", "node", "python", "python3",
    "rustc", "rustup", "make", "cmake", "docker", "kubectl",
    "gofmt", "golangci-lint",
})

VALID_AGENTS = frozenset({
    "nlu-intent-analyzer",
    "ceo",
    "research-director",
    "backend-engineer",
    "frontend-engineer",
    "aegis-guardian",
    "Explore",
    "Plan",
    "Bash",
    "general-purpose",
    "code-simplifier",
    "statusline-setup",
    "claude-code-guide",
})

ENGINEER_AGENTS = frozenset({"backend-engineer", "frontend-engineer", "aegis-guardian"})

# Checked in order; the first hit is reported
SECRET_PATTERNS = (
    "password =",
    "secret =",
    "api_key =",
    "token =",
    "aws_secret_access_key =",
    "begin rsa private",
    "begin openssh private",
    "begin ec private",
    "begin dsa private",
    "begin private key",
)

CODE_EXTENSIONS = (".rs", ".go", ".ts", ".tsx", ".js", ".jsx", ".py", ".astro")
FRONTEND_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".astro", ".vue", ".svelte")
BACKEND_EXTENSIONS = (".rs", ".go", ".py", ".java", ".kt")
SHELL_EXTENSIONS = (".sh", ".bash", ".zsh")

STUB_MARKERS = ("todo", "fixme", "unimplemented", "stub", "placeholder")

# Matched against whole words of a path (split on anything but letters and digits)
ALLOWLIST_WORDS = frozenset({
    "test", "tests", "testing", "testdata", "conftest",
    "spec", "specs", "mock", "mocks", "fixture", "fixtures",
})
ALLOWLIST_FRAGMENTS = ("/migrations/", "/seeds/", "/examples/", "/docs/", ".stories.")
_PATH_WORD_RE = re.compile(r"[a-z0-9]+")

CONFIG_FRAGMENTS = (
    "config", ".env", "astro.config", "vite.config", "next.config",
    "wrangler.toml", "docker-compose", "caddyfile", ".toml",
    "dev_ports", "constants",
)
NON_CODE_EXTENSIONS = (".md", ".txt", ".json", ".yaml", ".yml", ".csv", ".xml", ".html")

_DEFINITION_RE = re.compile(
    r"^\s*(?:export\s+)?(?:pub(?:\([^)]*\))?\s+)?(?:async\s+)?"
    r"(?:def|class|fn|func|function)\s+(?:\([^)]*\)\s*)?([A-Za-z_]\w*)",
    re.MULTILINE,
)

_BLOCK_KEYWORDS = ("impl", "class", "struct", "interface")


# =============================================================================
# Helpers
# =============================================================================


def find_fragment(text: str, fragments: "tuple[str, ...] | list[str]") -> str | None:
    """Return the first fragment contained in text (case-insensitive)."""
    lower = text.lower()
    for fragment in fragments:
        if fragment and fragment.lower() in lower:
            return fragment
    return None


def has_suffix(path: str, suffixes: "tuple[str, ...] | list[str]") -> str | None:
    """Return the first suffix the path ends with (case-insensitive)."""
    lower = path.lower()
    for suffix in suffixes:
        if suffix and lower.endswith(suffix.lower()):
            return suffix
    return None


def basename(path: str) -> str:
    return path.replace("\\", "/").rsplit("/", 1)[-1]


# =============================================================================
# Shell commands
# =============================================================================


def blocked_command(command: str, config: BashConfig) -> str | None:
    """
    Return the fragment that blocks a shell command, if any.

    Configured fragments are only consulted when the bash section is
    enabled; the built-in destructive patterns always apply.
    """
    if config.enabled:
        hit = find_fragment(command, config.blocked_commands)
        if hit:
            return hit
    return find_fragment(command, BLOCKED_SHELL_PATTERNS)


def detect_legacy_command(command: str) -> LegacyCommand | None:
    """Legacy tool invoked as the first word of a command, by basename."""
    parts = command.split()
    if not parts:
        return None
    name = parts[0].rsplit("/", 1)[-1]
    if name in LEGACY_ALLOWED:
        return None
    return LEGACY_COMMANDS.get(name)


def warn_command(command: str, config: BashConfig) -> str | None:
    """Configured warn fragment contained in a command."""
    return find_fragment(command, config.warn_commands)


# =============================================================================
# Paths
# =============================================================================


def is_sensitive_path(path: str) -> bool:
    return find_fragment(path, SENSITIVE_PATH_PATTERNS) is not None


def is_large_file(path: str) -> bool:
    return has_suffix(path, LARGE_FILE_EXTENSIONS) is not None


def read_blocked_path(path: str, config: ReadConfig) -> str | None:
    if not config.enabled:
        return None
    return find_fragment(path, config.blocked_paths)


def read_blocked_extension(path: str, config: ReadConfig) -> str | None:
    if not config.enabled:
        return None
    return has_suffix(path, config.blocked_extensions)


def read_warns_secrets(path: str, config: ReadConfig) -> bool:
    return bool(
        has_suffix(path, config.warn_extensions)
        or find_fragment(path, config.warn_patterns)
    )


def write_blocked_path(path: str, config: WriteConfig) -> str | None:
    if not config.enabled:
        return None
    return find_fragment(path, config.blocked_paths)


def path_depth(path: str, work_dir: str) -> int | None:
    """
    Number of '/' separators below the workspace.

    Returns None when the path is not inside work_dir.
    """
    if not path or not work_dir:
        return None
    root = work_dir.rstrip("/")
    if path != root and not path.startswith(root + "/"):
        return None
    return path[len(root):].count("/")


# =============================================================================
# File kinds
# =============================================================================


def is_code_file(path: str) -> bool:
    return has_suffix(path, CODE_EXTENSIONS) is not None


def is_frontend_file(path: str) -> bool:
    return has_suffix(path, FRONTEND_EXTENSIONS) is not None


def is_backend_file(path: str) -> bool:
    return has_suffix(path, BACKEND_EXTENSIONS) is not None


def is_rust_file(path: str) -> bool:
    return path.lower().endswith(".rs")


def is_go_file(path: str) -> bool:
    return path.lower().endswith(".go")


def is_python_file(path: str) -> bool:
    return path.lower().endswith(".py")


def is_java_file(path: str) -> bool:
    return has_suffix(path, (".java", ".kt")) is not None


def is_shell_file(path: str) -> bool:
    return has_suffix(path, SHELL_EXTENSIONS) is not None


def is_dockerfile(path: str) -> bool:
    base = basename(path).lower()
    return base.startswith("dockerfile") or base == "containerfile" or base.endswith(".dockerfile")


def is_source_file(path: str) -> bool:
    """Any file that carries code comments: sources, shell scripts and Dockerfiles."""
    suffixes = CODE_EXTENSIONS + FRONTEND_EXTENSIONS + BACKEND_EXTENSIONS + SHELL_EXTENSIONS
    return has_suffix(path, suffixes) is not None or is_dockerfile(path)


def is_handler_file(path: str) -> bool:
    return find_fragment(path, ("handler", "routes", "lib.rs")) is not None


def is_non_config_file(path: str) -> bool:
    """Source files that should not hardcode local URLs."""
    if find_fragment(path, CONFIG_FRAGMENTS):
        return False
    return has_suffix(path, NON_CODE_EXTENSIONS) is None


def is_allowlisted(path: str) -> bool:
    """Test, fixture, migration and example paths skip anti-production rules."""
    if find_fragment(path, ALLOWLIST_FRAGMENTS):
        return True
    return not ALLOWLIST_WORDS.isdisjoint(_PATH_WORD_RE.findall(path.lower()))


# =============================================================================
# Content
# =============================================================================


def find_secret(content: str) -> str | None:
    """First credential pattern contained in content."""
    if not content:
        return None
    return find_fragment(content, SECRET_PATTERNS)


def has_stub_markers(text: str) -> bool:
    return find_fragment(text, STUB_MARKERS) is not None


def definition_names(text: str) -> list[str]:
    """Names of functions and classes defined in a chunk of code."""
    return _DEFINITION_RE.findall(text)


def removed_definitions(old: str, new: str) -> list[str]:
    """Definitions in old whose names no longer appear anywhere in new."""
    removed: list[str] = []
    for name in definition_names(old):
        if name not in new and name not in removed:
            removed.append(name)
    return removed


def removed_block_keyword(old: str, new: str) -> str | None:
    """
    Keyword of an impl/class/struct/interface block present in old
    but with no block of that kind left in new.
    """
    for keyword in _BLOCK_KEYWORDS:
        pattern = re.compile(
            rf"^\s*(?:export\s+)?(?:pub(?:\([^)]*\))?\s+)?(?:abstract\s+)?{keyword}\b",
            re.MULTILINE,
        )
        if pattern.search(old) and not pattern.search(new):
            return keyword
    return None


# =============================================================================
# Agents
# =============================================================================


def is_valid_agent(agent: str) -> bool:
    """Exact, case-sensitive match against the known agent names."""
    return agent in VALID_AGENTS


def is_engineer(agent: str) -> bool:
    return agent in ENGINEER_AGENTS
