"""Typst text escaping and literal rendering"""

import re


LENGTH_RE = re.compile(r'^-?\d+(\.\d+)?(pt|mm|cm|in|em|fr|%|deg|rad)?$')
HEX_COLOR_RE = re.compile(r'^#[0-9a-fA-F]{3,8}$')
KEYWORDS = {"true", "false", "none", "auto"}


def typst_escape(s: str) -> str:
    """Escape markdown text for Typst markup: '@' would start a reference."""
    return s.replace("@", "\\@")


def typst_string(s: str) -> str:
    """Render s as a double-quoted Typst string literal."""
    return '"' + s.replace("\\", "\\\\").replace('"', '\\"') + '"'


def typst_value(raw: str) -> str:
    """Render a macro argument value as Typst code.

    '"quoted"' stays a string, keywords/numbers/lengths stay raw, '#rrggbb'
    becomes an rgb() color, anything else is quoted.
    """
    raw = raw.strip()
    if len(raw) >= 2 and raw[0] == raw[-1] == '"':
        return typst_string(raw[1:-1].replace('\\"', '"'))
    if raw in KEYWORDS or LENGTH_RE.match(raw):
        return raw
    if HEX_COLOR_RE.match(raw):
        return f'rgb("{raw}")'
    return typst_string(raw)
