"""Note: one markdown file with lazily loaded front matter and body."""

from __future__ import annotations

import logging
import os
import re
import threading
from datetime import datetime
from typing import Any

from noteo.errors import LinkResolutionError
from noteo.frontmatter import FrontMatter
from noteo.lazy import LazyCell
from noteo.parser import read_note
from noteo.tag import Tag

logger = logging.getLogger(__name__)

# [text](path)
_MARKDOWN_LINK_RE = re.compile(r"(\[[^\[\]]+\])\(([^()]+)\)")


class Note:
    """A single markdown note.

    Nothing is read from disk until it is needed: the file content is loaded
    at most once and kept as the baseline :meth:`save` compares against.

    ``path`` is the note's identity and is kept exactly as given; it is
    resolved against ``workdir`` (default: the process working directory)
    whenever the file is touched. Two ``Note`` objects for the same path do
    not share state.

    The body is guarded by a lock so a lazy load never overwrites a body that
    was already set, but a single ``Note`` is not meant to be mutated from
    several tasks at once.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        modified: datetime | None = None,
        *,
        workdir: str | os.PathLike[str] | None = None,
    ) -> None:
        self.path = os.fspath(path)
        self.workdir = os.fspath(workdir) if workdir is not None else None
        self._modified = modified
        self._original: LazyCell[tuple[str, str]] = LazyCell(lambda: read_note(self.file))
        self._front_matter = FrontMatter(self.path, lambda: self._original.get()[0])
        self._body: str | None = None
        self._body_lock = threading.Lock()

    def __repr__(self) -> str:
        return f"Note({self.path!r})"

    @property
    def file(self) -> str:
        """Filesystem location of the note."""
        if self.workdir is None:
            return self.path
        return os.path.join(self.workdir, self.path)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def modified(self) -> datetime:
        if self._modified is not None:
            return self._modified
        return datetime.fromtimestamp(os.stat(self.file).st_mtime).astimezone()

    @property
    def created(self) -> datetime | None:
        """Date from the ``Created`` key, ``None`` when the key is absent."""
        return self._front_matter.created

    @property
    def tags(self) -> list[Tag]:
        return self._front_matter.tags

    @property
    def body(self) -> str:
        with self._body_lock:
            if self._body is None:
                self._body = self._original.get()[1]
            return self._body

    @body.setter
    def body(self, text: str) -> None:
        with self._body_lock:
            self._body = text

    def find_tag(self, name: str) -> Tag | None:
        """Return the first tag called *name*, if any."""
        for tag in self.tags:
            if tag.name == name:
                return tag
        return None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def set_tag(self, tag: Tag) -> None:
        self._front_matter.set_tag(tag)

    def remove_tag(self, tag: Tag) -> None:
        self._front_matter.remove_tag(tag)

    def remove_tag_regex(self, regex: re.Pattern[str]) -> None:
        self._front_matter.remove_tag_regex(regex)

    def update_link(self, source: str | os.PathLike[str], target: str | os.PathLike[str]) -> None:
        """Point markdown links at *source* (or anything below it) to *target*.

        *source* and *target* are relative to ``workdir``. Rewritten links are
        relative to the note's directory and always use forward slashes.
        """
        base = os.path.abspath(self.workdir or os.getcwd())
        note_dir = os.path.normpath(os.path.join(base, os.path.dirname(self.path)))
        source_path = os.path.normpath(os.path.join(base, os.fspath(source)))
        target_path = os.path.normpath(os.path.join(base, os.fspath(target)))
        source_prefix = source_path.rstrip(os.sep) + os.sep

        def rewrite(match: re.Match[str]) -> str:
            text, link = match.groups()
            linked = os.path.normpath(os.path.join(note_dir, link))
            if linked == source_path:
                suffix = ""
            elif linked.startswith(source_prefix):
                suffix = linked[len(source_prefix):]
            else:
                return match.group(0)
            try:
                new_link = os.path.relpath(target_path, note_dir)
            except ValueError as exc:
                raise LinkResolutionError(self.path, link, str(exc)) from exc
            if suffix:
                new_link = os.path.normpath(os.path.join(new_link, suffix))
            return f"{text}({new_link.replace(os.sep, '/')})"

        self.body = _MARKDOWN_LINK_RE.sub(rewrite, self.body)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> bool:
        """Write the note if its serialized form differs from the baseline.

        Returns ``True`` when the file was written. The written content
        becomes the new baseline.
        """
        front_matter = self._front_matter.marshal()
        body = self.body
        original_front_matter, original_body = self._original.get()
        if front_matter + body == original_front_matter + original_body:
            return False
        with open(self.file, "w", encoding="utf-8", newline="") as fh:
            fh.write(front_matter + body)
        self._original.set((front_matter, body))
        logger.debug("%s saved", self.path)
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.path,
            "modified": self.modified,
            "created": self.created,
            "tags": [str(t) for t in self.tags],
            "text": self.body,
        }
