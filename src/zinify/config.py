"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"


class Settings(BaseModel):
    content_dir:       str = Field(default="content",    description="Base-dir subdirectory holding documents")
    themes_dir:        str = Field(default="themes",     description="Base-dir subdirectory holding themes")
    theme_file:        str = Field(default="theme.typ",  description="Principal file inside each theme directory")
    template_function: str = Field(default="zine",       pattern=r"^[A-Za-z_][\w-]*$", description="Theme function applied with #show")
    image_height:      str = Field(default="100%",       description="Height passed to every #image call")
    parser_config:     str = Field(default="commonmark", description="MarkdownIt parser preset name")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then ZINIFY_<FIELD> env vars, then non-None overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e

    for name in Settings.model_fields:
        if val := os.getenv(f"ZINIFY_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
