"""Themes: named Typst templates under <base>/themes/<name>/"""

import logging
from dataclasses import dataclass
from pathlib import PurePosixPath

from zinify.core.paths import THEMES_DIR, BaseDir, RootPath


logger = logging.getLogger(__name__)

THEME_FILE = "theme.typ"


@dataclass(frozen=True)
class Theme:
    name: str
    file: RootPath       # themes/<name>/theme.typ

    @classmethod
    def new(cls, base: BaseDir, name: str, themes_dir: str = THEMES_DIR, theme_file: str = THEME_FILE) -> "Theme":
        return cls(name=name, file=base.join(PurePosixPath(themes_dir, name, theme_file)))

    def resource(self, path: str) -> RootPath:
        """Address a file shipped with the theme, e.g. 'logo.png' -> themes/<name>/logo.png."""
        res = self.file.sibling(path)
        logger.debug("Theme %s resource %s -> %s", self.name, path, res)
        return res

    def relative_from(self, origin: RootPath) -> str:
        """Relative path reaching the theme file from origin's directory."""
        return self.file.relative_from(origin)
