"""Unit tests for core/transpile.py"""

import logging
import re

import pytest

from zinify.config import Settings
from zinify.core.transpile import FootnoteContext, Transpiler, sanitize_label, transpile
from zinify.errors import FootnoteConsistencyFault


@pytest.fixture(name="transpiler")
def transpiler_fixture():
    return Transpiler()


@pytest.fixture(name="tp")
def tp_fixture(transpiler):
    return transpiler.transpile


# --- block and inline emission ---

def test_heading_and_paragraph(tp):
    """Headings get one '=' per level; paragraphs are separated by a blank line."""
    assert tp("# Title\n\nHello @world\n") == "= Title\n\nHello \\@world"


def test_consecutive_headings_start_new_lines(tp):
    """Each heading starts on its own line."""
    assert tp("## One\n### Two\n") == "== One\n=== Two"


def test_strong_flattens_children(tp):
    """Bold text is wrapped in #strong and loses nested markup."""
    assert tp("Some **bold *and* @it** text\n") == "\n\nSome #strong([bold and \\@it]) text"


def test_breaks(tp):
    """Hard breaks become a backslash line break; soft breaks a newline."""
    assert tp("a  \nb\nc\n") == "\n\na\\\nb\nc"


def test_backslash_escape_kept_verbatim(tp):
    """Markdown escapes are emitted as written, which Typst also reads as escapes."""
    assert tp("\\*not bold\\*\n") == "\n\n\\*not bold\\*"


def test_entity_decoded(tp):
    """HTML entities are emitted as their character."""
    assert tp("fish &amp; chips\n") == "\n\nfish & chips"


def test_code_inline(tp):
    """Inline code becomes a Typst raw span."""
    assert tp("run `make @all`\n") == "\n\nrun `make @all`"


def test_unordered_list(tp):
    assert tp("- one\n- two\n") == "\n- one\n- two"


def test_ordered_list(tp):
    assert tp("1. one\n2. two\n") == "\n+ one\n+ two"


def test_nested_mixed_lists(tp):
    """List kinds are tracked per nesting level, so an inner list does not leak into the outer."""
    md = "1. a\n   - b\n   - c\n2. d\n"
    assert tp(md) == "\n+ a\n  - b\n  - c\n+ d"


def test_list_item_flattens_markup(tp):
    """List items are written as plain text."""
    assert tp("- some **bold** item\n") == "\n- some bold item"


def test_image(tp):
    """Images become #image calls with a fixed height; the caption is dropped."""
    out = tp("![A caption](pics/cover.png)\n")
    assert '\n#image(height: 100%, "pics/cover.png")\n' in out
    assert "caption" not in out


def test_module_transpile_uses_settings():
    """transpile() builds a Transpiler from the given settings."""
    assert transpile("![x](a.png)\n", Settings(image_height="3cm")) == '\n\n\n#image(height: 3cm, "a.png")\n'


def test_code_inline_with_backtick(tp):
    """Inline code holding a backtick is written as a raw() call."""
    assert tp("``a`b``\n") == '\n\n#raw("a`b")'


def test_image_height_from_settings():
    """The image height comes from Settings."""
    out = Transpiler(Settings(image_height="80%")).transpile("![x](a.png)\n")
    assert '#image(height: 80%, "a.png")' in out


def test_list_item_with_macro(tp):
    """A macro inside a list item is rendered after the item text."""
    out = tp("- item\n\n  {% note %}kept{% endnote %}\n")
    assert out == "\n- item\n\n#note(\n  [\nkept\n  ]\n)\n"


def test_list_item_macro_before_next_item(tp):
    """Items after a macro keep their own lines."""
    out = tp("- one\n\n  {% note %}x{% endnote %}\n- two\n")
    assert out.index("#note(") < out.index("\n- two")


def test_unknown_node_logged_and_walked(tp, caplog):
    """Unknown node kinds emit nothing of their own but their text survives."""
    caplog.set_level(logging.DEBUG, logger="zinify.core.transpile")
    assert tp("> quoted\n") == "\n\nquoted"
    assert "Unknown node type: blockquote" in caplog.text


# --- footnotes ---

def test_footnote_reference_and_label(tp):
    """Numeric labels are dropped; other labels become an emphasized prefix without digits."""
    md = "Text[^1] more[^NdT1].\n\n[^1]: First.\n[^NdT1]: Second.\n"
    assert tp(md) == "\n\nText#footnote[First.] more#footnote[#emph[NdT:] Second.]."


def test_inline_footnote(tp):
    """Inline footnotes are numbered with the referenced ones."""
    md = "A^[inline note] and B[^x].\n\n[^x]: defined note\n"
    assert tp(md) == "\n\nA#footnote[inline note] and B#footnote[#emph[x:] defined note]."


def test_footnote_definition_has_no_inline_output(tp):
    """A definition only shows up where it is referenced."""
    out = tp("Ref[^a].\n\n[^a]: body text\n\nAfter.\n")
    assert out.count("body text") == 1
    assert out.endswith("After.")


def test_many_footnotes_no_placeholder_left(tp):
    """With more than nine footnotes, [^1] never clobbers [^12]."""
    refs = " ".join(f"w{i}[^{i}]" for i in range(1, 13))
    defs = "".join(f"[^{i}]: note {i}\n" for i in range(1, 13))
    out = tp(f"{refs}\n\n{defs}")
    assert not re.search(r"\[\^\d+\]", out)
    for i in range(1, 13):
        assert f"w{i}#footnote[note {i}]" in out


def test_footnote_in_strong(tp):
    """A reference inside bold text still pairs with its definition."""
    out = tp("**bold[^1]**\n\n[^1]: note\n")
    assert out == "\n\n#strong([bold#footnote[note]])"


def test_footnote_reused_reference_is_fatal(tp):
    """Referencing one definition twice breaks the reference/definition pairing."""
    with pytest.raises(FootnoteConsistencyFault) as exc:
        tp("A[^x] B[^x]\n\n[^x]: note\n")
    assert exc.value.counted == 2
    assert exc.value.defined == 1


@pytest.mark.parametrize("label,expected", [
    ("NdT1", "NdT"),
    ("123", ""),
    ("a1b2", "ab"),
    ("note", "note"),
])
def test_sanitize_label(label, expected):
    assert sanitize_label(label) == expected


def test_footnote_context_resolve_descending():
    """resolve replaces the longest placeholders first."""
    ctx = FootnoteContext()
    text = "".join(ctx.reference() for _ in range(12))
    for i in range(1, 13):
        ctx.define(None, f"#footnote[{i}]")
    assert ctx.resolve(text) == "".join(f"#footnote[{i}]" for i in range(1, 13))


def test_footnote_context_check():
    """A counter that disagrees with the collected definitions raises."""
    ctx = FootnoteContext()
    ctx.reference()
    with pytest.raises(FootnoteConsistencyFault):
        ctx.resolve("[^1]")


# --- macros ---

def test_macro_single_line(tp):
    """A one-line macro becomes a call named after it wrapping its content."""
    assert tp("{% note %}hello{% endnote %}\n") == "\n\n#note(\n  [\nhello\n  ]\n)\n"


def test_macro_args_and_markdown_body(tp):
    """Arguments are rendered as Typst values and the body is transpiled as markdown."""
    md = '{% box title: "Hi there" width: 50% color: #ff0000 %}\nBody with **bold**\n{% endbox %}\n'
    assert tp(md) == (
        "\n\n#box(\n"
        '  title: "Hi there",\n'
        "  width: 50%,\n"
        '  color: rgb("#ff0000"),\n'
        "  [\n"
        "Body with #strong([bold])\n"
        "  ]\n"
        ")\n"
    )


def test_macro_footnotes_numbered_locally(tp):
    """Footnotes inside a macro body are numbered independently of the document."""
    md = (
        "Outer[^1]\n\n"
        "{% aside %}\n"
        "Inner[^1]\n"
        "\n"
        "[^1]: inner note\n"
        "{% endaside %}\n\n"
        "[^1]: outer note\n"
    )
    out = tp(md)
    assert "Outer#footnote[outer note]" in out
    assert "Inner#footnote[inner note]" in out


def test_macro_other_macro_in_body(tp):
    """A different macro inside a body is rendered when the body is transpiled."""
    md = "{% outer %}\n{% inner %}x{% endinner %}\n{% endouter %}\n"
    out = tp(md)
    assert "#outer(" in out
    assert "#inner(" in out
    assert out.index("#outer(") < out.index("#inner(")


def test_macro_marker_without_grammar_is_text(tp):
    """A marker that does not open a macro is kept as text."""
    assert tp("{% not a macro\n") == "\n\n{% not a macro"


def test_footnote_in_image_caption(tp):
    """A reference in dropped image text is still numbered, so definitions pair up."""
    out = tp("![alt[^1]](a.png)\n\n[^1]: note\n")
    assert '#image(height: 100%, "a.png")' in out
    assert "[^" not in out


def test_footnote_in_list_inside_footnote(tp):
    """A reference in a list nested in a footnote body keeps the counts consistent."""
    out = tp("A[^1]\n\n[^1]: note\n\n    - sub[^2]\n\n[^2]: deep\n")
    assert out == "\n\nA#footnote[note]"


def test_footnote_in_nested_list_item(tp):
    """References in nested list items are emitted where the item is written."""
    out = tp("- a\n  - b[^1]\n\n[^1]: note\n")
    assert out == "\n- a\n  - b#footnote[note]"
