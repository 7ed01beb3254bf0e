"""Root test configuration: shared project trees and path fixtures"""

from pathlib import Path

import pytest

from zinify.core.paths import BaseDir
from zinify.core.theme import Theme


ZINE_MD = """\
---
title: Hello @zine
author: Jo
themes:
  footheme:
    accent_color: "ff0000"
    logo_res: logo.png
---

# Issue one

Text with a note[^1].

[^1]: The note.
"""


@pytest.fixture(name="base")
def base_fixture():
    """A lexical base directory; nothing is read from disk."""
    return BaseDir(Path("/root"))


@pytest.fixture(name="theme")
def theme_fixture(base):
    return Theme.new(base, "footheme")


@pytest.fixture(name="project")
def project_fixture(tmp_path):
    """A project tree: content/issue1/zine.md and themes/footheme/theme.typ."""
    (tmp_path / "themes" / "footheme").mkdir(parents=True)
    (tmp_path / "themes" / "footheme" / "theme.typ").write_text("#let zine(body) = body\n")
    issue = tmp_path / "content" / "issue1"
    issue.mkdir(parents=True)
    (issue / "zine.md").write_text(ZINE_MD, encoding="utf-8")
    return tmp_path
