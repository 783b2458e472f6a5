"""
Security tests for path policies.

These tests verify that:
1. Reads of credentials, keys and system files are denied
2. Relative segments and case changes do not get around the checks
3. Writes to protected system and credential locations are denied
4. Glob and Grep are held to the same path rules as Read
"""

from collections.abc import Callable

import pytest

from tollgate.gates import CHAINS, GateContext, run_chain
from tollgate.schema import EventCategory, GatesConfig, HookEvent, ReadConfig, Verdict, VerdictKind, WriteConfig
from tollgate.session import SessionStore


@pytest.fixture
def check(store: SessionStore) -> Callable[..., Verdict]:
    def run(event: HookEvent, category: EventCategory, config: GatesConfig | None = None) -> Verdict:
        ctx = GateContext(event.with_category(category), config or GatesConfig(), store)
        return run_chain(CHAINS[category], ctx)

    return run


def read(path: str) -> HookEvent:
    return HookEvent(tool_name="Read", tool_input={"file_path": path})


def write(path: str, content: str = "x\n") -> HookEvent:
    return HookEvent(tool_name="Write", tool_input={"file_path": path, "content": content})


class TestReadProtection:
    """Read gate denials."""

    @pytest.mark.parametrize("path", [
        "/etc/shadow",
        "/etc/passwd",
        "/home/dev/.ssh/id_rsa",
        "/home/dev/.ssh/id_ed25519",
        "/home/dev/.aws/credentials",
        "/home/dev/.gnupg/secring.gpg",
    ])
    def test_blocked_paths(self, check: Callable[..., Verdict], path: str) -> None:
        verdict = check(read(path), EventCategory.PRE_TOOL)
        assert (verdict.gate, verdict.reason) == ("READ", "blocked_path")

    @pytest.mark.parametrize("path", [
        "/work/proj/../../etc/shadow",
        "/work/proj/./../../../etc/passwd",
        "/HOME/DEV/.SSH/ID_RSA",
    ])
    def test_relative_segments_and_case(self, check: Callable[..., Verdict], path: str) -> None:
        assert check(read(path), EventCategory.PRE_TOOL).reason == "blocked_path"

    @pytest.mark.parametrize("path", ["/srv/tls/server.pem", "/srv/tls/server.KEY", "/tmp/cert.p12"])
    def test_blocked_extensions(self, check: Callable[..., Verdict], path: str) -> None:
        assert check(read(path), EventCategory.PRE_TOOL).reason == "blocked_extension"

    @pytest.mark.parametrize("path", [
        "/work/proj/.env",
        "/work/proj/.env.production",
        "/work/proj/config/secrets.yaml",
        "/work/proj/private_key.txt",
    ])
    def test_sensitive_files(self, check: Callable[..., Verdict], path: str) -> None:
        assert check(read(path), EventCategory.PRE_TOOL).reason == "sensitive_file"

    def test_disabled_config_keeps_sensitive_check(self, check: Callable[..., Verdict]) -> None:
        config = GatesConfig(read=ReadConfig(enabled=False))
        assert check(read("/etc/shadow"), EventCategory.PRE_TOOL, config).kind == VerdictKind.SILENT
        assert check(read("/work/proj/.env"), EventCategory.PRE_TOOL, config).reason == "sensitive_file"

    def test_ordinary_file(self, check: Callable[..., Verdict]) -> None:
        assert check(read("/work/proj/src/app.py"), EventCategory.PRE_TOOL).kind == VerdictKind.SILENT


class TestSearchTools:
    @pytest.mark.parametrize("tool", ["Glob", "Grep"])
    def test_blocked_path(self, check: Callable[..., Verdict], tool: str) -> None:
        event = HookEvent(tool_name=tool, tool_input={"path": "/home/dev/.gnupg/", "pattern": "*"})
        assert check(event, EventCategory.PRE_TOOL).reason == "blocked_path"

    def test_no_path_searches_workspace(self, check: Callable[..., Verdict]) -> None:
        event = HookEvent(tool_name="Grep", tool_input={"pattern": "TODO"})
        assert check(event, EventCategory.PRE_TOOL).kind == VerdictKind.SILENT


class TestWriteProtection:
    """Enforcer denials on the pre-write chain."""

    @pytest.mark.parametrize("path", [
        "/etc/cron.d/backdoor",
        "/usr/local/share/motd",
        "/bin/ls",
        "/home/dev/.ssh/authorized_keys",
        "/home/dev/.aws/config",
        "/work/proj/../../etc/hosts",
        "/ETC/hosts",
    ])
    def test_protected(self, check: Callable[..., Verdict], path: str) -> None:
        verdict = check(write(path), EventCategory.PRE_WRITE)
        assert (verdict.gate, verdict.reason) == ("ENFORCER", f"Write:blocked_path:{path}")

    def test_notebook_path(self, check: Callable[..., Verdict]) -> None:
        event = HookEvent(tool_name="NotebookEdit", tool_input={"notebook_path": "/etc/nb.ipynb", "new_source": "1"})
        assert check(event, EventCategory.PRE_WRITE).gate == "ENFORCER"

    def test_disabled(self, check: Callable[..., Verdict]) -> None:
        config = GatesConfig(write=WriteConfig(enabled=False))
        assert check(write("/etc/motd"), EventCategory.PRE_WRITE, config).kind == VerdictKind.SILENT

    def test_workspace_file(self, check: Callable[..., Verdict]) -> None:
        assert check(write("/work/proj/README.md"), EventCategory.PRE_WRITE).kind == VerdictKind.SILENT
