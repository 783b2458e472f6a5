"""
CLI entry point for Tollgate.

Hook commands read one JSON event from stdin and write one JSON verdict to
stdout. Everything else prints human-readable bracket blocks.

Commands:
    gates       Run a gate chain (--hook for the host protocol)
    intent      Alias of `gates intent`
    session     Session lifecycle: init, validate, compact, resume, end, land
    status      Show session state
    doctor      Check configuration, state directory and gates

The CLI stays thin: hook commands go straight to the Dispatcher, session
commands to tollgate.session.lifecycle.
"""

import json
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console

from tollgate import __version__
from tollgate.dispatcher import Dispatcher, resolve_category
from tollgate.errors import ConfigLoadError, EventParseError, StorageWriteError
from tollgate.logs import configure_logging
from tollgate.protocol import as_error, encode_verdict
from tollgate.schema import (
    EventCategory,
    HookEvent,
    VerdictKind,
    default_config_path,
    load_config,
    load_config_or_default,
    parse_event,
)
from tollgate.session import SessionStore
from tollgate.session import lifecycle

app = typer.Typer(
    name="tollgate",
    help="Policy gates and session state for AI coding assistant hooks.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to gates config (JSON or YAML)."),
]
HookOption = Annotated[
    bool,
    typer.Option("--hook", help="Hook mode: JSON event on stdin, JSON verdict on stdout."),
]
EventOption = Annotated[
    Optional[Path],
    typer.Option("--event", "-e", help="Read the event from a file instead of stdin."),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]tollgate[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    Tollgate - policy gates for AI coding assistant hooks.

    Allow, deny or annotate each tool call, prompt and lifecycle event, and
    keep a per-day session record across hook invocations.
    """
    configure_logging()


def _print_block(text: str) -> None:
    # Bracket blocks look like rich markup; print them verbatim
    console.print(text, markup=False, highlight=False, soft_wrap=True, end="")


def _read_event(event_path: Optional[Path]) -> str:
    if event_path is None:
        return sys.stdin.read()
    try:
        return event_path.read_text(encoding="utf-8")
    except OSError as e:
        console.print(f"[red]Cannot read event file: {e}[/red]")
        raise typer.Exit(code=1)


def _run_gates(
    category: Optional[EventCategory],
    hook: bool,
    config_path: Optional[Path],
    event_path: Optional[Path],
) -> None:
    """Shared body of every gate command."""
    config = load_config_or_default(config_path)
    store = SessionStore()
    raw = _read_event(event_path)

    if hook:
        Dispatcher(config, store).dispatch(raw, category)
        raise typer.Exit(code=0)

    # Interactive use: same decision, rendered for a person
    dispatcher = Dispatcher(config, store)
    try:
        event = parse_event(raw)
    except EventParseError as e:
        console.print(f"[yellow]{e.message}; using an empty event[/yellow]")
        event = HookEvent()
    if category is None:
        category = resolve_category(event)
    verdict = dispatcher.decide(event, category)

    label = category.value if category else "unresolved"
    if verdict.kind == VerdictKind.DENY:
        error = as_error(verdict, event.tool_name)
        console.print(f"[red]✗ denied[/red] ({label}) by [bold]{verdict.gate}[/bold]")
        console.print(f"  reason: {verdict.reason}", markup=False)
        if error is not None and error.suggestion:
            console.print(f"  [dim]{error.suggestion}[/dim]")
    elif verdict.kind == VerdictKind.CONTEXT:
        console.print(f"[green]✓ allowed[/green] ({label}) with context from [bold]{verdict.gate}[/bold]")
        payload = encode_verdict(verdict, category, store.today(), event.hook_event_name)
        _print_block(payload.get("additionalContext", ""))
    else:
        note = f" [dim]{verdict.note}[/dim]" if verdict.note else ""
        console.print(f"[green]✓ allowed[/green] ({label}){note}")


# =============================================================================
# Gates Subcommand Group
# =============================================================================

gates_app = typer.Typer(
    name="gates",
    help="Run gate chains against a hook event.",
    no_args_is_help=True,
)
app.add_typer(gates_app, name="gates")


@gates_app.command("pre-write")
def gates_pre_write(hook: HookOption = False, config: ConfigOption = None, event: EventOption = None) -> None:
    """Check a file write before it happens."""
    _run_gates(EventCategory.PRE_WRITE, hook, config, event)


@gates_app.command("post-write")
def gates_post_write(hook: HookOption = False, config: ConfigOption = None, event: EventOption = None) -> None:
    """Scan written content and track modified files."""
    _run_gates(EventCategory.POST_WRITE, hook, config, event)


@gates_app.command("pre-tool")
def gates_pre_tool(hook: HookOption = False, config: ConfigOption = None, event: EventOption = None) -> None:
    """Check a non-write tool call before it runs."""
    _run_gates(EventCategory.PRE_TOOL, hook, config, event)


@gates_app.command("post-tool")
def gates_post_tool(hook: HookOption = False, config: ConfigOption = None, event: EventOption = None) -> None:
    """Record research, tasks and agent completions."""
    _run_gates(EventCategory.POST_TOOL, hook, config, event)


@gates_app.command("intent")
def gates_intent(hook: HookOption = False, config: ConfigOption = None, event: EventOption = None) -> None:
    """Classify a submitted prompt and inject routing directives."""
    _run_gates(EventCategory.PROMPT_SUBMIT, hook, config, event)


@gates_app.command("subagent")
def gates_subagent(hook: HookOption = False, config: ConfigOption = None, event: EventOption = None) -> None:
    """Validate a sub-agent start."""
    _run_gates(EventCategory.SUBAGENT_INVOKE, hook, config, event)


@gates_app.command("lifecycle")
def gates_lifecycle(hook: HookOption = False, config: ConfigOption = None, event: EventOption = None) -> None:
    """Session start, compaction and stop reports."""
    _run_gates(EventCategory.SESSION_LIFECYCLE, hook, config, event)


@gates_app.command("hook")
def gates_hook(hook: HookOption = False, config: ConfigOption = None, event: EventOption = None) -> None:
    """Pick the chain from the event's hook name and tool name."""
    _run_gates(None, hook, config, event)


@app.command("intent")
def intent(hook: HookOption = False, config: ConfigOption = None, event: EventOption = None) -> None:
    """Alias of `tollgate gates intent`."""
    _run_gates(EventCategory.PROMPT_SUBMIT, hook, config, event)


# =============================================================================
# Session Subcommand Group
# =============================================================================

session_app = typer.Typer(
    name="session",
    help="Session lifecycle commands.",
    no_args_is_help=True,
)
app.add_typer(session_app, name="session")


def _save(store: SessionStore, record) -> None:
    try:
        store.save(record)
    except StorageWriteError as e:
        console.print(f"[yellow]{e.message}[/yellow]")


@session_app.command("init")
def session_init() -> None:
    """Start (or recover) today's session."""
    store = SessionStore()
    with store.lock():
        record = store.load_or_create()
        docs = lifecycle.count_memory_docs(lifecycle.memory_dir(store))
        text = lifecycle.render_init(record, docs)
        _save(store, record)
    _print_block(text)


@session_app.command("validate")
def session_validate() -> None:
    """Check session state and the memory bank; exit 1 on failure."""
    text, passed = lifecycle.validate(SessionStore())
    _print_block(text)
    raise typer.Exit(code=0 if passed else 1)


@session_app.command("compact")
def session_compact() -> None:
    """Prepare for context compaction."""
    store = SessionStore()
    with store.lock():
        record = store.load_or_create()
        text = lifecycle.render_compact(record)
        _save(store, record)
    _print_block(text)


@session_app.command("resume")
def session_resume() -> None:
    """Resume work: state, active task and memory."""
    store = SessionStore()
    with store.lock():
        record = store.load_or_create()
        docs = lifecycle.count_memory_docs(lifecycle.memory_dir(store))
        pending = lifecycle.load_scratchpad_task(store, record.project)
        text = lifecycle.render_resume(record, docs, pending)
        _save(store, record)
    _print_block(text)


@session_app.command("end")
def session_end() -> None:
    """Summarize and persist the session."""
    store = SessionStore()
    with store.lock():
        record = store.load_or_create()
        text = lifecycle.render_end(record)
        _save(store, record)
    _print_block(text)


@session_app.command("land")
def session_land() -> None:
    """Wrap up the current task."""
    store = SessionStore()
    with store.lock():
        record = store.load_or_create()
        text = lifecycle.render_land(record)
        _save(store, record)
    _print_block(text)


@app.command()
def status() -> None:
    """Show today's session state."""
    store = SessionStore()
    _print_block(lifecycle.render_status(store.load_or_create()))


# =============================================================================
# Doctor
# =============================================================================


@app.command()
def doctor(
    config_path: ConfigOption = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output in JSON format."),
    ] = False,
) -> None:
    """
    Check that hooks can run.

    Checks:
    - Python version (3.11+)
    - Gates config parses (a missing file is fine)
    - State directory is writable and the session lock can be taken
    - A known-dangerous command is denied
    """
    checks = []

    py_version = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    py_ok = sys.version_info >= (3, 11)
    checks.append({
        "name": "Python",
        "ok": py_ok,
        "value": py_version,
        "message": "OK" if py_ok else "Python 3.11+ required",
    })

    path = config_path or default_config_path()
    config_ok = True
    try:
        load_config(path)
        config_message = "Valid"
    except FileNotFoundError:
        config_message = "Not found (defaults apply)"
    except ConfigLoadError as e:
        config_ok = False
        config_message = e.message
    checks.append({"name": "Config", "ok": config_ok, "value": str(path), "message": config_message})

    store = SessionStore()
    state_ok = True
    try:
        store.state_dir.mkdir(parents=True, exist_ok=True)
        with store.lock() as held:
            state_message = "Writable, lock acquired" if held else "Writable, lock busy"
    except OSError as e:
        state_ok = False
        state_message = f"Not writable: {e}"
    checks.append({"name": "State", "ok": state_ok, "value": str(store.state_dir), "message": state_message})

    probe = HookEvent(tool_name="Bash", tool_input={"command": "rm -rf /"})
    verdict = Dispatcher(load_config_or_default(config_path), store).decide(probe, EventCategory.PRE_TOOL)
    error = as_error(verdict, probe.tool_name)
    gates_ok = error is not None
    checks.append({
        "name": "Gates",
        "ok": gates_ok,
        "value": "Bash rm -rf /",
        "message": error.message if error else "Dangerous command was not denied",
        "error": error.to_dict() if error else None,
    })

    all_ok = all(check["ok"] for check in checks)

    if json_output:
        output = {
            "ok": all_ok,
            "version": __version__,
            "checks": checks,
        }
        print(json.dumps(output, indent=2))
    else:
        console.print(f"[bold]Tollgate Doctor[/bold] v{__version__}")
        console.print()

        for check in checks:
            icon = "[green]✓[/green]" if check["ok"] else "[red]✗[/red]"
            if check["ok"]:
                console.print(f"{icon} {check['name']}: [dim]{check['value']}[/dim] - {check['message']}")
            else:
                console.print(f"{icon} {check['name']}: [dim]{check['value']}[/dim]")
                console.print(f"    [red]{check['message']}[/red]")

        console.print()
        if all_ok:
            console.print("[green]All checks passed![/green]")
        else:
            console.print("[yellow]Some checks failed. See above for details.[/yellow]")

    raise typer.Exit(code=0 if all_ok else 1)


if __name__ == "__main__":
    app()
