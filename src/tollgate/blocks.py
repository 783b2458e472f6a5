"""
Bracket-section key/value text format.

Tollgate uses one lightweight text format for both the persisted session
record and the guidance text injected into the agent's context:

    [SECTION]
    key: value
    other_key: value

Lines starting with '#' are comments. A line is split on its first ':' so
values may themselves contain colons (paths, reasons like "a:b:c").
"""

from collections.abc import Iterable, Mapping


def format_block(name: str, items: Mapping[str, object] | Iterable[tuple[str, object]]) -> str:
    """
    Render a single bracket block.

    Args:
        name: Section name without brackets (e.g., "BLOCK")
        items: Ordered key/value pairs; insertion order is preserved

    Returns:
        The block text, one trailing newline per line
    """
    pairs = items.items() if isinstance(items, Mapping) else items
    lines = [f"[{name}]"]
    for key, value in pairs:
        lines.append(f"{key}: {format_value(value)}")
    return "\n".join(lines) + "\n"


def format_value(value: object) -> str:
    """Render a scalar the way the session file stores it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    if value is None:
        return ""
    return str(value)


def parse_fields(text: str) -> dict[str, str]:
    """
    Flatten a bracket-block document into a key -> value mapping.

    Section headers and comments are skipped; a key seen twice keeps its
    last value. Lines without a ':' are ignored.
    """
    fields: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or line.startswith("["):
            continue
        key, sep, value = line.partition(":")
        if not sep:
            continue
        fields[key.strip()] = value.strip()
    return fields


def split_csv(value: str) -> list[str]:
    """Split a comma list, dropping blanks."""
    return [part.strip() for part in value.split(",") if part.strip()]


def join_escaped(items: Iterable[str]) -> str:
    r"""
    Join values that may contain commas into one comma list.

    Backslashes and commas inside a value are escaped with a backslash:

        >>> join_escaped(["/a,b.py", "/c.py"])
        '/a\\,b.py,/c.py'
    """
    return ",".join(item.replace("\\", "\\\\").replace(",", "\\,") for item in items)


def split_escaped(value: str) -> list[str]:
    """Inverse of join_escaped; blank entries are dropped."""
    parts: list[str] = []
    current: list[str] = []
    chars = iter(value)
    for char in chars:
        if char == "\\":
            current.append(next(chars, "\\"))
        elif char == ",":
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return [part.strip() for part in parts if part.strip()]
