"""Front matter extraction and the Typst header generated from it"""

import logging
import re
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from zinify.core.document import Document
from zinify.core.theme import Theme
from zinify.core.utils.typst import typst_escape, typst_string
from zinify.errors import FrontMatterParseError


logger = logging.getLogger(__name__)

FRONTMATTER_OPEN_RE = re.compile(r'^---[ \t]*\r?\n')
FRONTMATTER_RE = re.compile(r'^---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)', re.DOTALL | re.MULTILINE)

RAW_SUFFIXES = ('_size', '_spacing', '_bool')


class FrontMatter(BaseModel):
    title:       str
    subtitle:    Optional[str] = None
    author:      Optional[str] = None
    description: Optional[str] = None
    summary:     Optional[str] = None
    themes:      dict[str, dict[str, str]]     # only the first entry is rendered

    @field_validator('themes', mode='before')
    @classmethod
    def _stringify_settings(cls, value: Any) -> Any:
        """Coerce YAML scalars in theme settings to their Typst spelling."""
        if not isinstance(value, dict):
            return value
        themes = {}
        for name, settings in value.items():
            if settings is None:
                settings = {}
            if isinstance(settings, dict):
                settings = {k: _scalar_str(v) for k, v in settings.items()}
            themes[name] = settings
        return themes

    @field_validator('themes')
    @classmethod
    def _require_theme(cls, value: dict[str, dict[str, str]]) -> dict[str, dict[str, str]]:
        if not value:
            raise ValueError("at least one theme is required")
        return value

    def selected_theme(self) -> tuple[str, dict[str, str]]:
        """Return the (name, settings) of the first declared theme."""
        return next(iter(self.themes.items()))


def _scalar_str(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "none"
    if isinstance(value, (int, float)):
        return str(value)
    return value


def parse_frontmatter(raw_text: str) -> tuple[FrontMatter, str]:
    """Return (front_matter, body) split on the leading '---' YAML block."""
    if not FRONTMATTER_OPEN_RE.match(raw_text):
        raise FrontMatterParseError("Missing front matter: document must start with a '---' line")
    m = FRONTMATTER_RE.match(raw_text)
    if not m:
        raise FrontMatterParseError("Unterminated front matter: closing '---' line not found")

    try:
        data = yaml.safe_load(m.group(1)) or {}
    except yaml.YAMLError as e:
        raise FrontMatterParseError(f"Invalid YAML front matter: {e}") from e
    if not isinstance(data, dict):
        raise FrontMatterParseError(f"Invalid YAML front matter: expected a mapping, got {type(data).__name__}")

    try:
        frontmatter = FrontMatter.model_validate(data)
    except ValidationError as e:
        raise FrontMatterParseError(f"Invalid front matter: {e}") from e
    return frontmatter, raw_text[m.end():]


def encode_setting(key: str, value: str, document: Document, theme: Theme) -> str:
    """Render one theme setting as Typst code, dispatching on the key suffix."""
    if key.endswith('_color'):
        return f"rgb({typst_string(value)})"
    if key.endswith(RAW_SUFFIXES) or key == 'debug':
        return value
    if key.endswith('_res'):
        return typst_string(document.resource_from_theme(value, theme))
    return typst_string(value)


def header_fields(frontmatter: FrontMatter, document: Document, theme: Theme) -> list[tuple[str, str]]:
    """Ordered (name, typst_value) arguments for the theme function."""
    fields = [('title', typst_string(frontmatter.title))]
    if frontmatter.subtitle is not None:
        fields.append(('subtitle', typst_string(frontmatter.subtitle)))
    if frontmatter.author is not None:
        fields.append(('author', typst_string(frontmatter.author)))
    if frontmatter.description is not None:
        fields.append(('description', f"[ {typst_escape(frontmatter.description)} ]"))
    if frontmatter.summary is not None:
        fields.append(('summary', f"[ {typst_escape(frontmatter.summary)} ]"))

    for key, value in frontmatter.themes.get(theme.name, {}).items():
        fields.append((key, encode_setting(key, value, document, theme)))
    return fields


def serialize_header(
    frontmatter: FrontMatter,
    document: Document,
    theme: Theme,
    template_function: str = "zine",
    ) -> str:
    """Return the Typst preamble: theme import plus a #show rule carrying the metadata."""
    import_path = theme.relative_from(document.file)
    logger.debug("Using import theme: %s", import_path)

    args = "".join(f"  {name}: {value},\n" for name, value in header_fields(frontmatter, document, theme))
    return (
        f"#import {typst_string(import_path)}: *\n"
        f"#show: {template_function}.with(\n"
        f"{args}"
        ")\n\n"
    )
