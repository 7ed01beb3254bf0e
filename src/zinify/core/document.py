"""Source documents inside the content tree and the resources they reference"""

import logging
from dataclasses import dataclass

from zinify.core.paths import CONTENT_DIR, THEMES_DIR, PathLike, RootPath
from zinify.core.theme import Theme


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    file: RootPath

    @classmethod
    def from_path(cls, path: PathLike, content_dir: str = CONTENT_DIR, themes_dir: str = THEMES_DIR) -> "Document":
        return cls(RootPath.from_path(path, content_dir, themes_dir))

    @property
    def directory(self) -> RootPath:
        return self.file.parent

    def resource(self, path: str) -> RootPath:
        """Address a resource stored next to the document."""
        return self.file.sibling(path)

    def resource_from_theme(self, path: str, theme: Theme) -> str:
        """Relative path reaching a document resource from the theme file.

        The theme template is what loads the resource, so the path is
        expressed from the theme's directory.
        """
        res = self.resource(path).relative_from(theme.file)
        logger.debug("Resource %s for %s is %s from theme %s", path, self.file, res, theme.name)
        return res

    def output_file(self, theme: Theme) -> RootPath:
        """Typst file generated for theme: content/a/b.md -> content/a/b.<theme>.typ"""
        return self.file.with_suffix(f".{theme.name}.typ")
