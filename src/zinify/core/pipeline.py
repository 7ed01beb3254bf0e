"""Pipeline step functions: render markdown zines to Typst sources"""

import logging
from pathlib import Path

from zinify.config import Settings, load_config
from zinify.core.document import Document
from zinify.core.frontmatter import parse_frontmatter, serialize_header
from zinify.core.theme import Theme
from zinify.core.transpile import Transpiler
from zinify.errors import DocumentIOError, ZinifyError


logger = logging.getLogger(__name__)

MD_EXTENSIONS = {'.md'}


def discover_files(path: Path) -> list[Path]:
    """Return sorted .md files under path, or [path] if a single file."""
    if path.is_file():
        return [path] if path.suffix in MD_EXTENSIONS else []
    return sorted(p for p in path.rglob('*') if p.suffix in MD_EXTENSIONS)


def select_theme(document: Document, name: str, settings: Settings) -> Theme:
    return Theme.new(document.file.root, name, settings.themes_dir, settings.theme_file)


def render_document(
    raw_text: str,
    document: Document,
    settings: Settings = None,
    transpiler: Transpiler = None,
    ) -> tuple[Theme, str]:
    """Return (theme, typst_source) for a markdown zine: header from front matter, then body."""
    settings = settings or Settings()
    transpiler = transpiler or Transpiler(settings)

    frontmatter, body = parse_frontmatter(raw_text)
    theme_name, _ = frontmatter.selected_theme()
    if len(frontmatter.themes) > 1:
        logger.info("%s declares %d themes, rendering only '%s'", document.file, len(frontmatter.themes), theme_name)
    theme = select_theme(document, theme_name, settings)

    header = serialize_header(frontmatter, document, theme, settings.template_function)
    return theme, header + transpiler.transpile(body)


def render_file(path: Path, settings: Settings = None, transpiler: Transpiler = None) -> Path:
    """Render one markdown file to <stem>.<theme>.typ beside it. Returns the written path.

    Without settings, load_config() supplies them. Read, decode and write
    failures are raised as DocumentIOError.
    """
    settings = settings or load_config()
    document = Document.from_path(path, settings.content_dir, settings.themes_dir)
    try:
        raw = Path(path).read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentIOError(f"Cannot read document: {e}", path=path) from e
    try:
        theme, source = render_document(raw, document, settings, transpiler)
    except ZinifyError as e:
        if e.path is None:
            e.path = path
        raise

    out_file = document.output_file(theme).absolute()
    try:
        out_file.write_text(source, encoding='utf-8')
    except OSError as e:
        raise DocumentIOError(f"Cannot write {out_file}: {e}", path=path) from e
    logger.info("Wrote to %s", out_file)
    return out_file


def run_render(
    path: Path,
    settings: Settings = None,
    ) -> tuple[list[tuple[Path, Path]], list[tuple[Path, ZinifyError]]]:
    """Render every markdown file under path.

    Returns (rendered, failed): (source, typst_file) pairs and (source, error)
    pairs. A failing document is logged and skipped; the others still render.
    """
    settings = settings or load_config()
    transpiler = Transpiler(settings)
    rendered, failed = [], []
    for p in discover_files(Path(path)):
        try:
            rendered.append((p, render_file(p, settings, transpiler)))
        except ZinifyError as e:
            logger.error("Failed to render %s: %s", p, e)
            failed.append((p, e))
    return rendered, failed
