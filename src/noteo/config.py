"""Configuration: environment settings, logging setup and the repository file."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

CONFIG_FILE = ".noteo.yml"

CONFIG_TEMPLATE = """# This is a Noteo configuration for repository (YAML format)
# editor: vim +
"""

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_env(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.getenv(key, default)


LOG_LEVEL = get_env("NOTEO_LOG_LEVEL", "WARNING").upper()


def setup_logging(level: str | None = None) -> None:
    """Configure root logging; *level* overrides ``NOTEO_LOG_LEVEL``."""
    logging.basicConfig(
        format=LOG_FORMAT,
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.WARNING),
        stream=sys.stderr,
    )


@dataclass
class RepoConfig:
    """Settings read from a repository's ``.noteo.yml``."""

    editor: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> "RepoConfig":
        d = d or {}
        editor = d.get("editor")
        return cls(editor="" if editor is None else str(editor))

    def to_dict(self) -> dict[str, Any]:
        return {"editor": self.editor}


def load_repo_config(path: str | Path) -> RepoConfig:
    """Read *path*; an empty file is an empty config."""
    with open(path, encoding="utf-8") as fh:
        try:
            loaded = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ValueError(f"{path}: {exc}") from exc
    if loaded is not None and not isinstance(loaded, dict):
        raise ValueError(f"{path}: configuration must be a YAML mapping")
    return RepoConfig.from_dict(loaded)


def editor_command(repo_config: RepoConfig | None = None) -> str:
    """Editor to launch: repository setting, then $VISUAL, then $EDITOR."""
    if repo_config is not None and repo_config.editor:
        return repo_config.editor
    for key in ("VISUAL", "EDITOR"):
        value = get_env(key)
        if value:
            return value
    if sys.platform.startswith("win"):
        return "notepad"
    return "vim +"
