"""Base-directory discovery and relative-path resolution inside a zine project.

A project tree looks like::

    <base>/
        content/<any>/<doc>.md
        themes/<name>/theme.typ

Every file is addressed as a RootPath: the base directory plus a path
relative to it. Relative paths between two RootPaths are computed from the
root inward, which fits the shallow content/themes layout.
"""

import logging
from dataclasses import dataclass, replace
from pathlib import Path, PurePosixPath
from typing import Union

from zinify.errors import BaseDirectoryNotFound


logger = logging.getLogger(__name__)

CONTENT_DIR = "content"
THEMES_DIR = "themes"

PathLike = Union[str, Path, PurePosixPath]


@dataclass(frozen=True)
class BaseDir:
    """Root of a project tree, holding sibling content and themes directories."""
    path: Path

    def join(self, path: PathLike) -> "RootPath":
        return address(self, path)

    def __str__(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class RootPath:
    """A path relative to a BaseDir, e.g. themes/footheme/logo.png."""
    root: BaseDir
    path: PurePosixPath

    @classmethod
    def from_path(cls, path: PathLike, content_dir: str = CONTENT_DIR, themes_dir: str = THEMES_DIR) -> "RootPath":
        """Locate the base directory above path and address path from it."""
        absolute = Path(path).absolute()
        base = locate_base_dir(absolute, content_dir, themes_dir)
        logger.debug("Found base directory %s for %s", base, absolute)
        return address(base, absolute)

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def parent(self) -> "RootPath":
        return replace(self, path=self.path.parent)

    def absolute(self) -> Path:
        return self.root.path / self.path

    def sibling(self, name: PathLike) -> "RootPath":
        """Path named `name` in the same directory as this one."""
        return replace(self, path=self.path.parent / PurePosixPath(name))

    def with_suffix(self, suffix: str) -> "RootPath":
        return replace(self, path=self.path.with_suffix(suffix))

    def relative_from(self, origin: "RootPath") -> str:
        """Relative path reaching this file from the directory of `origin`."""
        return resolve_relative(origin, self)

    def __str__(self) -> str:
        return self.path.as_posix()


def locate_base_dir(start: PathLike, content_dir: str = CONTENT_DIR, themes_dir: str = THEMES_DIR) -> BaseDir:
    """Return the nearest ancestor of start holding both content_dir and themes_dir."""
    start = Path(start).absolute()
    for candidate in start.parents:
        logger.debug("Investigating %s as base directory", candidate)
        if (candidate / content_dir).is_dir() and (candidate / themes_dir).is_dir():
            return BaseDir(candidate)
    raise BaseDirectoryNotFound(start, content_dir, themes_dir)


def address(base: BaseDir, path: PathLike) -> RootPath:
    """Build a RootPath, stripping base's prefix when path is absolute."""
    path = Path(path)
    if path.is_absolute():
        try:
            path = path.relative_to(base.path)
        except ValueError:
            logger.debug("%s is outside base directory %s, kept as is", path, base)
    return RootPath(root=base, path=PurePosixPath(path.as_posix()))


def _parent_parts(path: PurePosixPath) -> tuple[str, ...]:
    return tuple(part for part in path.parent.parts if part != "/")


def common_prefix_length(a: tuple[str, ...], b: tuple[str, ...]) -> int:
    """Length of the positional common prefix of a and b."""
    length = 0
    for left, right in zip(a, b):
        if left != right:
            break
        length += 1
    return length


def resolve_relative(src: RootPath, dst: RootPath) -> str:
    """Relative path from the directory of src to dst.

    Directories are compared position by position from the root; one '..' is
    emitted for each of src's directories past the shared prefix, then dst's
    remaining directories and file name are appended. A directory reappearing
    later in both trees is not detected as shared.
    """
    src_dirs = _parent_parts(src.path)
    dst_dirs = _parent_parts(dst.path)
    shared = common_prefix_length(src_dirs, dst_dirs)

    parts = [".."] * (len(src_dirs) - shared)
    parts.extend(dst_dirs[shared:])
    parts.append(dst.path.name)
    return PurePosixPath(*parts).as_posix()
