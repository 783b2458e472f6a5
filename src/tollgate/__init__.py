"""
Tollgate - Policy gates between an AI coding agent and the tools it calls.

The agent host invokes Tollgate once per hook event (prompt submit, pre/post
tool use, pre/post write, sub-agent start, session lifecycle). Tollgate reads
the event from stdin, walks the ordered gate chain for that event and writes
exactly one verdict to stdout:
- allow silently
- allow with injected guidance text
- deny with a gate name and reason

Example usage:
    $ echo '{"tool_name": "Bash", "tool_input": {"command": "ls"}}' | tollgate gates pre-tool --hook
    $ tollgate session init
    $ tollgate status
"""

__version__ = "0.1.0"
__author__ = "Tollgate Contributors"

__all__ = [
    "__version__",
    "__author__",
]
