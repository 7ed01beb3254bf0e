"""Markdown to Typst transpilation over the markdown-it syntax tree.

Footnotes take two passes. markdown-it moves every footnote definition to a
block at the end of the document, so references are first emitted as
numbered placeholders ([^1], [^2], ...) while definitions are collected in
order; the placeholders are replaced once the whole tree has been walked.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode
from mdit_py_plugins.footnote import footnote_plugin

from zinify.config import Settings
from zinify.core.macros import block_macro_plugin, render_call
from zinify.core.utils.tokens import heading_level, is_list
from zinify.core.utils.typst import typst_escape, typst_string
from zinify.errors import FootnoteConsistencyFault


logger = logging.getLogger(__name__)

PASSTHROUGH = {'root', 'inline', 'footnote_block'}
SKIPPED = {'footnote_anchor'}


def make_parser(preset: str = 'commonmark') -> MarkdownIt:
    """Build a MarkdownIt instance with footnotes and block macros.

    text_join is disabled so backslash escapes reach the tree as text_special.
    """
    md = MarkdownIt(preset, options_update={"linkify": False})
    md.use(footnote_plugin).use(block_macro_plugin)
    md.disable('text_join')
    return md


def sanitize_label(label: str) -> str:
    """Only keep non-digit characters: 'NdT1' -> 'NdT'."""
    return ''.join(c for c in label if not c.isdecimal())


@dataclass
class FootnoteContext:
    """Footnote numbering for one transpile call."""
    counter: int = 0
    footnotes: list[tuple[Optional[str], str]] = field(default_factory=list)   # (label, #footnote[...])

    def reference(self) -> str:
        self.counter += 1
        return f"[^{self.counter}]"

    def define(self, label: Optional[str], content: str) -> None:
        self.footnotes.append((label, content))

    def check(self) -> None:
        if self.counter != len(self.footnotes):
            raise FootnoteConsistencyFault(self.counter, len(self.footnotes))

    def render(self, index: int) -> str:
        """Rendered footnote for 1-based index, with its label as an emphasized prefix."""
        label, content = self.footnotes[index - 1]
        if label is None or label.isdecimal():
            return content
        return content.replace("#footnote[", f"#footnote[#emph[{sanitize_label(label)}:] ", 1)

    def resolve(self, out: str) -> str:
        """Replace every placeholder, longest numbers first so [^1] never matches inside [^12]."""
        self.check()
        rendered = [self.render(k) for k in range(1, self.counter + 1)]
        for k in range(self.counter, 0, -1):
            placeholder = f"[^{k}]"
            out = out.replace(placeholder, rendered[k - 1])
            # a definition may itself reference a later footnote
            for j in range(k - 1):
                rendered[j] = rendered[j].replace(placeholder, rendered[k - 1])
        return out


class Transpiler:
    """Converts markdown body text to Typst markup."""

    def __init__(self, settings: Settings = None):
        self.settings = settings or Settings()
        self.md = make_parser(self.settings.parser_config)

    def transpile(self, markdown: str) -> str:
        """Transpile markdown; footnote numbering is local to this call."""
        root = SyntaxTreeNode(self.md.parse(markdown))
        walk = _Walk(self)
        walk.node(root)
        return walk.footnotes.resolve("".join(walk.out))


def transpile(markdown: str, settings: Settings = None) -> str:
    """Transpile markdown body text to Typst with a one-off Transpiler."""
    return Transpiler(settings).transpile(markdown)


def _walked_after_item(node: SyntaxTreeNode) -> bool:
    return is_list(node) or node.type == 'block_macro'


class _Walk:
    """State for a single pass over one syntax tree."""

    def __init__(self, transpiler: Transpiler):
        self.transpiler = transpiler
        self.out: list[str] = []
        self.footnotes = FootnoteContext()
        self.lists: list[str] = []      # stack of 'bullet_list' / 'ordered_list'
        self.handlers: dict[str, Callable[[SyntaxTreeNode], None]] = {
            'heading':      self.heading,
            'paragraph':    self.paragraph,
            'text':         self.text,
            'text_special': self.text_special,
            'code_inline':  self.code_inline,
            'hardbreak':    self.hardbreak,
            'softbreak':    self.softbreak,
            'strong':       self.strong,
            'bullet_list':  self.list_block,
            'ordered_list': self.list_block,
            'list_item':    self.list_item,
            'image':        self.image,
            'footnote_ref': self.footnote_ref,
            'footnote':     self.footnote,
            'block_macro':  self.block_macro,
        }

    def emit(self, s: str) -> None:
        self.out.append(s)

    def newline(self) -> None:
        """Start a fresh line unless already at one."""
        if self.out and not self.out[-1].endswith("\n"):
            self.emit("\n")

    def node(self, node: SyntaxTreeNode) -> None:
        handler = self.handlers.get(node.type)
        if handler is not None:
            handler(node)
            return
        if node.type in SKIPPED:
            return
        if node.type not in PASSTHROUGH:
            logger.debug("Unknown node type: %s", node.type)
        self.children(node)

    def children(self, node: SyntaxTreeNode) -> None:
        for child in node.children:
            self.node(child)

    def flatten(self, node: SyntaxTreeNode) -> str:
        """Plain text of node's descendants; footnote references become placeholders."""
        return self._flatten(node.children)

    def _flatten(self, children: list[SyntaxTreeNode]) -> str:
        parts: list[str] = []
        for child in children:
            if child.type == 'text':
                parts.append(typst_escape(child.content))
            elif child.type == 'text_special':
                parts.append(self._special(child))
            elif child.type == 'code_inline':
                parts.append(typst_escape(child.content))
            elif child.type in ('softbreak', 'hardbreak'):
                parts.append(" ")
            elif child.type == 'footnote_ref':
                parts.append(self.footnotes.reference())
            elif is_list(child) or child.type == 'image':
                self.drop(child)
            elif child.type == 'block_macro':
                logger.debug("Dropping macro '%s' inside flattened text", child.meta['name'])
            elif child.type == 'footnote_anchor':
                continue
            else:
                if child.type == 'paragraph' and parts:
                    parts.append(" ")
                parts.append(self.flatten(child))
        return "".join(parts)

    def drop(self, node: SyntaxTreeNode) -> None:
        """Discard node's output but still number the footnote references inside it."""
        for child in node.children:
            if child.type == 'footnote_ref':
                self.footnotes.reference()
                logger.debug("Footnote reference dropped along with its %s", node.type)
            else:
                self.drop(child)

    def _special(self, node: SyntaxTreeNode) -> str:
        if node.info == 'escape':
            return node.markup
        return typst_escape(node.content)

    def heading(self, node: SyntaxTreeNode) -> None:
        self.newline()
        self.emit("=" * (heading_level(node) or 1) + " ")
        self.children(node)

    def paragraph(self, node: SyntaxTreeNode) -> None:
        self.emit("\n\n")
        self.children(node)

    def text(self, node: SyntaxTreeNode) -> None:
        self.emit(typst_escape(node.content))

    def text_special(self, node: SyntaxTreeNode) -> None:
        self.emit(self._special(node))

    def code_inline(self, node: SyntaxTreeNode) -> None:
        if "`" in node.content:
            self.emit(f"#raw({typst_string(node.content)})")
        else:
            self.emit(f"`{node.content}`")

    def hardbreak(self, node: SyntaxTreeNode) -> None:
        self.emit("\\\n")

    def softbreak(self, node: SyntaxTreeNode) -> None:
        self.emit("\n")

    def strong(self, node: SyntaxTreeNode) -> None:
        # nested markup inside bold text is flattened away
        self.emit(f"#strong([{self.flatten(node)}])")

    def list_block(self, node: SyntaxTreeNode) -> None:
        self.lists.append(node.type)
        try:
            self.children(node)
        finally:
            self.lists.pop()

    def list_item(self, node: SyntaxTreeNode) -> None:
        ordered = bool(self.lists) and self.lists[-1] == 'ordered_list'
        indent = "  " * max(len(self.lists) - 1, 0)
        # nested lists and macros are walked after the item text
        nested = [c for c in node.children if _walked_after_item(c)]
        text = self._flatten([c for c in node.children if not _walked_after_item(c)])
        self.emit(f"\n{indent}{'+ ' if ordered else '- '}{text}")
        for child in nested:
            self.node(child)

    def image(self, node: SyntaxTreeNode) -> None:
        if node.children:
            logger.debug("Dropping caption of image %s", node.attrs.get('src'))
            self.drop(node)
        url = str(node.attrs.get('src', ''))
        self.emit(f"\n#image(height: {self.transpiler.settings.image_height}, {typst_string(url)})\n")

    def footnote_ref(self, node: SyntaxTreeNode) -> None:
        self.emit(self.footnotes.reference())

    def footnote(self, node: SyntaxTreeNode) -> None:
        label = node.meta.get('label')
        self.footnotes.define(label, f"#footnote[{self.flatten(node).strip()}]")

    def block_macro(self, node: SyntaxTreeNode) -> None:
        # the body gets its own Transpiler call, hence its own footnote numbering
        content = self.transpiler.transpile(node.meta['body']).strip("\n")
        self.emit(render_call(node.meta['name'], node.meta['args'], content))
