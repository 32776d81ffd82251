"""Split raw note content into its front-matter block and body."""

from __future__ import annotations

import re
from pathlib import Path

FENCE = "---"

_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+\Z")


def _lines(text: str) -> list[str]:
    """Split on LF only, keeping line endings."""
    return _LINE_RE.findall(text)


def split_front_matter(content: str) -> tuple[str, str]:
    """Return ``(front_matter, body)``.

    The front matter is everything from a first line starting with ``---``
    up to and including the next line starting with ``---``, fences and line
    endings kept verbatim. Without a closing fence the whole content is body,
    so ``front_matter + body == content`` always holds.
    """
    lines = _lines(content)
    if not lines or not lines[0].startswith(FENCE):
        return "", content
    for index, line in enumerate(lines[1:], start=1):
        if line.startswith(FENCE):
            end = index + 1
            return "".join(lines[:end]), "".join(lines[end:])
    return "", content


def front_matter_yaml(front_matter: str) -> str:
    """Strip the opening and closing fence lines from a raw block."""
    lines = _lines(front_matter)
    return "".join(lines[1:-1])


def read_note(path: str | Path) -> tuple[str, str]:
    """Read a note file as UTF-8 without newline translation and split it."""
    with open(path, encoding="utf-8", newline="") as fh:
        return split_front_matter(fh.read())
