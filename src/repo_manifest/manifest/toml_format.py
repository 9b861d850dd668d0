"""TOML text layer for manifest files.

Parsing goes through ``tomllib``; writing walks a plain document dict and
re-emits only the recognized keys in a fixed order, so the output does not
depend on any serializer's key ordering.
"""
import re
import tomllib
from typing import Any, Dict, List, Optional

HEADER_LINES = (
    "# This file is automatically generated by repo-manifest.",
    "# Edit it as you wish.",
)

REPOS_KEY = "repos"
DEFAULTS_FIELD_ORDER = ("version", "default-branch", "default-remote")
REPO_FIELD_ORDER = ("local", "remote", "branch", "tag", "commit", "sparse")

# Some platforms write the root path as an empty string rather than ".".
_EMPTY_LOCAL_RE = re.compile(r"""^(\s*local\s*=\s*)(?:""|'')(?!["'])""")
_MULTILINE_DELIMS = ('"""', "'''")

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\f": "\\f",
    "\r": "\\r",
}


def normalize_root_marker(text: str) -> str:
    """Rewrite empty-string ``local`` values to the root marker ``"."``.

    Only key lines are rewritten; lines inside multi-line string values
    are passed through untouched.
    """
    out = []
    open_delim = None
    for line in text.splitlines(keepends=True):
        if open_delim is None:
            out.append(_EMPTY_LOCAL_RE.sub(r'\1"."', line))
            open_delim = _opened_multiline(line)
        else:
            out.append(line)
            if line.count(open_delim) % 2 == 1:
                open_delim = None
    return "".join(out)


def _opened_multiline(line: str) -> Optional[str]:
    """Return the delimiter of a multi-line string left open by line, if any."""
    positions = [(line.find(d), d) for d in _MULTILINE_DELIMS if d in line]
    if not positions:
        return None
    _, delim = min(positions)
    return delim if line.count(delim) % 2 == 1 else None


def loads(text: str) -> Dict[str, Any]:
    """Parse manifest text into a plain dict.

    Raises:
        tomllib.TOMLDecodeError: If the text is not valid TOML
    """
    return tomllib.loads(normalize_root_marker(text))


def quote_string(value: str) -> str:
    """Render value as a TOML basic string."""
    out = []
    for ch in value:
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return quote_string(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_value(v) for v in value) + "]"
    raise TypeError(f"Unsupported manifest value type: {type(value).__name__}")


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, (list, tuple, dict)) and not value)


def _emit_fields(table: Dict[str, Any], order: tuple, out: List[str]) -> None:
    for key in order:
        value = table.get(key)
        if not _is_empty(value):
            out.append(f"{key} = {format_value(value)}\n")


def dumps(document: Dict[str, Any]) -> str:
    """Render a manifest document dict as TOML text.

    Layout: the advisory header, the top-level defaults followed by one
    blank line, then one ``[[repos]]`` block per entry, each followed by one
    blank line. Keys outside the field-order tables are dropped.
    """
    out = [line + "\n" for line in HEADER_LINES]
    _emit_fields(document, DEFAULTS_FIELD_ORDER, out)
    out.append("\n")

    for table in document.get(REPOS_KEY) or []:
        out.append(f"[[{REPOS_KEY}]]\n")
        _emit_fields(table, REPO_FIELD_ORDER, out)
        out.append("\n")

    return "".join(out)
