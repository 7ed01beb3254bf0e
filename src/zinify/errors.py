"""Error types raised while resolving paths, reading front matter, and transpiling"""

from pathlib import Path
from typing import Optional, Union


class ZinifyError(Exception):
    """Base exception for zinify errors."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None) -> None:
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        msg = super().__str__()
        if self.path is not None:
            msg = f"{msg}\nPath: {self.path}"
        return msg


class BaseDirectoryNotFound(ZinifyError):
    """No ancestor directory holds both the content and themes directories."""

    def __init__(self, path: Union[str, Path], content_dir: str = "content", themes_dir: str = "themes") -> None:
        super().__init__(
            f"No base directory with '{content_dir}/' and '{themes_dir}/' found above {path}",
            path=path,
        )
        self.content_dir = content_dir
        self.themes_dir = themes_dir


class FrontMatterParseError(ZinifyError):
    """Front matter block is missing, unterminated, or malformed."""


class FootnoteConsistencyFault(ZinifyError):
    """Footnote references and footnote definitions do not pair up.

    Raised at the end of the first transpile pass; the caller gets no partial
    output for the document.
    """

    def __init__(self, counted: int, defined: int) -> None:
        super().__init__(f"Counted {counted} footnote references but found {defined} footnote definitions")
        self.counted = counted
        self.defined = defined


class DocumentIOError(ZinifyError):
    """A document could not be read, decoded as UTF-8, or written out."""
