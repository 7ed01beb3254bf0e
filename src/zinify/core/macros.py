"""Block macros: {% name key: value %} ... {% endname %} captured before inline parsing.

The markdown-it block rule below captures the raw body of a macro and stores
it on a single `block_macro` token; the transpiler renders it as a Typst call
whose trailing content argument is the body, transpiled again from scratch.

Macros of the same name do not nest: the first `{% endname %}` closes the
capture. A line holding only `{% endname %}` is always a closing marker, so
names starting with "end" open a macro only when followed by arguments or
body text on the same line. Different macros inside a body are picked up
when the body itself is transpiled.
"""

import logging
import re
from dataclasses import dataclass, field
from itertools import chain
from typing import Iterable, Optional

from markdown_it import MarkdownIt
from markdown_it.rules_block import StateBlock

from zinify.core.utils.typst import typst_value


logger = logging.getLogger(__name__)

MACRO_MARKER = '{%'
OPEN_RE = re.compile(r'^\{%\s*([A-Za-z_][\w-]*)(.*?)%\}')
CLOSE_RE = re.compile(r'^\{%\s*end[\w-]+\s*%\}\s*$')     # a bare {% endname %} line
ARG_RE = re.compile(r'([A-Za-z_][\w-]*)\s*:\s*("(?:[^"\\]|\\.)*"|[^\s,"]+)')


@dataclass
class BlockMacro:
    name: str
    args: list[tuple[str, str]] = field(default_factory=list)   # ordered raw key/value pairs
    body: str = ""


def _end_re(name: str) -> re.Pattern:
    return re.compile(r'\{%\s*end' + re.escape(name) + r'\s*%\}')


def parse_args(text: str) -> list[tuple[str, str]]:
    """Parse 'key: value key2: "quoted"' into ordered pairs; unparseable text is ignored."""
    args = ARG_RE.findall(text)
    leftover = ARG_RE.sub('', text).strip(' \t,')
    if leftover:
        logger.debug("Ignoring unparseable macro arguments: %r", leftover)
    return args


def parse_block(line: str) -> Optional[tuple[BlockMacro, str]]:
    """Parse an opening marker at the start of line; return (macro, text after the marker)."""
    if CLOSE_RE.match(line):
        return None
    m = OPEN_RE.match(line)
    if not m:
        return None
    return BlockMacro(name=m.group(1), args=parse_args(m.group(2))), line[m.end():]


def capture_macro(lines: Iterable[str]) -> Optional[tuple[BlockMacro, int]]:
    """Capture a macro opening on the first line; return (macro, lines consumed).

    Body lines are kept verbatim up to the line holding the closing marker.
    Without a closing marker the capture runs to the last line.
    """
    lines = iter(lines)
    first = next(lines, None)
    if first is None or MACRO_MARKER not in first:
        return None
    opened = parse_block(first.strip())
    if opened is None:
        return None

    macro, rest = opened
    end = _end_re(macro.name)
    if m := end.search(rest):
        macro.body = rest[:m.start()]
        return macro, 1

    body = [rest] if rest.strip() else []
    consumed = 1
    for line in lines:
        consumed += 1
        if m := end.search(line):
            if line[:m.start()].strip():
                body.append(line[:m.start()])
            break
        body.append(line)
    else:
        logger.warning("Macro '%s' has no closing marker, captured to end of document", macro.name)

    macro.body = "".join(f"{line}\n" for line in body)
    return macro, consumed


def block_macro_rule(state: StateBlock, startLine: int, endLine: int, silent: bool) -> bool:
    if state.sCount[startLine] - state.blkIndent >= 4:
        return False

    first = state.src[state.bMarks[startLine] + state.tShift[startLine]:state.eMarks[startLine]]
    if MACRO_MARKER not in first:
        return False

    following = (state.src[state.bMarks[i]:state.eMarks[i]] for i in range(startLine + 1, endLine))
    captured = capture_macro(chain([first], following))
    if captured is None:
        return False
    if silent:
        return True

    macro, consumed = captured
    token = state.push('block_macro', '', 0)
    token.block = True
    token.content = macro.body
    token.map = [startLine, startLine + consumed]
    token.meta = {
        'name': macro.name,
        'args': [(key, typst_value(value)) for key, value in macro.args],
        'body': macro.body,
    }
    state.line = startLine + consumed
    return True


def block_macro_plugin(md: MarkdownIt) -> None:
    """Register the block macro rule ahead of fenced code."""
    md.block.ruler.before(
        'fence', 'block_macro', block_macro_rule,
        {'alt': ['paragraph', 'reference', 'blockquote', 'list']},
    )


def render_call(name: str, args: list[tuple[str, str]], content: str) -> str:
    """Render '#name(key: value, ..., [content])' with one argument per line."""
    out = [f"\n\n#{name}(\n"]
    out.extend(f"  {key}: {value},\n" for key, value in args)
    out.append("  [\n")
    if content:
        out.append(f"{content}\n")
    out.append("  ]\n)\n")
    return "".join(out)
