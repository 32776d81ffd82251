"""Repository: a directory tree of notes rooted at a ``.noteo.yml`` marker."""

from __future__ import annotations

import asyncio
import logging
import os
import re
import unicodedata
import uuid
from datetime import datetime
from pathlib import Path

from noteo.config import CONFIG_FILE, CONFIG_TEMPLATE, RepoConfig, load_repo_config
from noteo.date import format_rfc3339
from noteo.errors import NOTE_ERRORS, NotANoteError, RepositoryExistsError, RepositoryNotFoundError
from noteo.note import Note
from noteo.parser import split_front_matter
from noteo.stream import Channel, Context, pipe
from noteo.tag import Tag

logger = logging.getLogger(__name__)


def find_root(directory: str | os.PathLike[str]) -> Path:
    """Return the nearest ancestor of *directory* (itself included) holding ``.noteo.yml``."""
    current = Path(os.path.abspath(directory))
    for candidate in (current, *current.parents):
        if (candidate / CONFIG_FILE).is_file():
            return candidate
    raise RepositoryNotFoundError(str(directory))


# ---------------------------------------------------------------------------
# New notes
# ---------------------------------------------------------------------------

_NOT_ALLOWED_RE = re.compile(r"[^a-zA-Z0-9.\- ]")
_MAX_NAME_LENGTH = 30
# letters NFKD does not decompose into an ASCII base
_ASCII_LETTERS = str.maketrans({"ł": "l", "Ł": "L", "ø": "o", "Ø": "O", "đ": "d", "Đ": "D", "ß": "ss"})


def generate_filename(text: str) -> str:
    """File name (without ``.md``) for a new note, taken from its first body line.

    Diacritics are folded to ASCII, anything outside ``[a-zA-Z0-9.- ]`` is
    dropped and spaces become dashes. A line longer than 30 characters is
    replaced by its first capitalized word after the first one, if any, and
    truncated. An empty result is ``unknown``.
    """
    _, body = split_front_matter(text)
    name = body.lstrip("\n").split("\n", 1)[0]
    name = unicodedata.normalize("NFKD", name.translate(_ASCII_LETTERS))
    name = _NOT_ALLOWED_RE.sub("", name).strip(" ")
    if len(name) > _MAX_NAME_LENGTH:
        for word in name.split()[1:]:
            if word[0].isupper():
                name = word
                break
    name = name[:_MAX_NAME_LENGTH].replace(" ", "-").lower()
    return name or "unknown"


def note_template(created: datetime) -> str:
    """Front matter of a new note, stamped with its creation date."""
    return f"---\nCreated: {format_rfc3339(created)}\nTags: \n---\n\n"


def _scan(directory: str | Path) -> list[tuple[str, bool, float | None]]:
    """``(path, is_dir, mtime)`` for subdirectories and ``*.md`` files, in name order."""
    with os.scandir(directory) as it:
        entries = sorted(it, key=lambda entry: entry.name)
    listing: list[tuple[str, bool, float | None]] = []
    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            listing.append((entry.path, True, None))
        elif entry.name.endswith(".md") and entry.is_file():
            listing.append((entry.path, False, entry.stat().st_mtime))
    return listing


class Repository:
    """Notes under ``root``, seen from the working directory ``dir``.

    Note paths produced by the walker are relative to ``dir``.
    """

    def __init__(self, root: str | os.PathLike[str], dir: str | os.PathLike[str]) -> None:
        self.root = Path(root)
        self.dir = Path(dir)

    def __repr__(self) -> str:
        return f"Repository(root={str(self.root)!r}, dir={str(self.dir)!r})"

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    @classmethod
    def init(cls, directory: str | os.PathLike[str]) -> Path:
        """Create ``.noteo.yml`` in *directory* and return its path."""
        try:
            existing = find_root(directory)
        except RepositoryNotFoundError:
            config_file = Path(directory) / CONFIG_FILE
            config_file.write_text(CONFIG_TEMPLATE, encoding="utf-8")
            logger.debug("initialized repository at %s", directory)
            return config_file
        raise RepositoryExistsError(str(existing))

    @classmethod
    def for_work_dir(cls, directory: str | os.PathLike[str]) -> "Repository":
        return cls(find_root(directory), directory)

    @property
    def config_file(self) -> Path:
        return self.root / CONFIG_FILE

    def config(self) -> RepoConfig:
        return load_repo_config(self.config_file)

    def add(self, text: str) -> str:
        """Write *text* as a new note in the working directory.

        Returns the file name relative to ``dir``. When the generated name is
        taken, a short random suffix is appended instead of overwriting.
        """
        name = generate_filename(text)
        self.dir.mkdir(parents=True, exist_ok=True)
        file = self.dir / f"{name}.md"
        if file.exists():
            file = self.dir / f"{name}-{uuid.uuid4().hex[:7]}.md"
        with open(file, "x", encoding="utf-8", newline="") as fh:
            fh.write(text)
        logger.debug("added %s", file)
        return os.path.relpath(file, self.dir)

    # ------------------------------------------------------------------
    # Walker
    # ------------------------------------------------------------------

    def notes(self, ctx: Context) -> tuple[Channel[Note], Channel[BaseException]]:
        """Stream every note below the working directory."""
        return self._walk(ctx, self.dir)

    def all_notes(self, ctx: Context) -> tuple[Channel[Note], Channel[BaseException]]:
        """Stream every note below the repository root."""
        return self._walk(ctx, self.root)

    def _walk(self, ctx: Context, top: Path) -> tuple[Channel[Note], Channel[BaseException]]:
        out: Channel[Note] = Channel()
        errors: Channel[BaseException] = Channel()
        ctx.spawn(self._walk_loop(top, out, errors), out, errors)
        return out, errors

    async def _walk_loop(self, top: Path, out: Channel[Note], errors: Channel[BaseException]) -> None:
        logger.debug("walking %s", top)
        try:
            await self._visit(top, out)
        except OSError as exc:
            await errors.send(exc)

    async def _visit(self, directory: str | Path, out: Channel[Note]) -> None:
        for path, is_dir, mtime in await asyncio.to_thread(_scan, directory):
            await asyncio.sleep(0)
            if is_dir:
                await self._visit(path, out)
            else:
                modified = datetime.fromtimestamp(mtime).astimezone()
                note_path = os.path.relpath(path, self.dir)
                await out.send(Note(note_path, modified=modified, workdir=self.dir))

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def tags(self, ctx: Context) -> tuple[Channel[Tag], Channel[BaseException]]:
        """Stream the tags of every note below the working directory, duplicates included."""
        out: Channel[Tag] = Channel()
        errors: Channel[BaseException] = Channel()
        notes, walk_errors = self.notes(ctx)
        ctx.spawn(self._tags_loop(notes, walk_errors, out, errors), out, errors)
        return out, errors

    @staticmethod
    async def _tags_loop(
        notes: Channel[Note],
        walk_errors: Channel[BaseException],
        out: Channel[Tag],
        errors: Channel[BaseException],
    ) -> None:
        async with asyncio.TaskGroup() as group:
            group.create_task(pipe(walk_errors, errors))
            async for note in notes:
                try:
                    note_tags = note.tags
                except NOTE_ERRORS as exc:
                    await errors.send(exc)
                    continue
                for tag in note_tags:
                    await out.send(tag)

    def tag_file(self, file: str | os.PathLike[str], tag: str) -> bool:
        """Set *tag* on one note; returns whether the file was written."""
        new_tag = Tag.parse(tag)
        note = self._note(file)
        note.set_tag(new_tag)
        return note.save()

    def untag_file(self, file: str | os.PathLike[str], tag: str) -> bool:
        old_tag = Tag.parse(tag)
        note = self._note(file)
        note.remove_tag(old_tag)
        return note.save()

    def untag_file_regex(self, file: str | os.PathLike[str], regex: str | re.Pattern[str]) -> bool:
        """Remove the first tag matching *regex*."""
        compiled = re.compile(regex) if isinstance(regex, str) else regex
        note = self._note(file)
        note.remove_tag_regex(compiled)
        return note.save()

    def _note(self, file: str | os.PathLike[str]) -> Note:
        path = os.fspath(file)
        if not path.endswith(".md"):
            raise NotANoteError(path)
        return Note(path, workdir=self.dir)

    # ------------------------------------------------------------------
    # Move
    # ------------------------------------------------------------------

    def move(
        self, ctx: Context, source: str | os.PathLike[str], target: str | os.PathLike[str]
    ) -> tuple[Channel[Note], Channel[bool], Channel[BaseException]]:
        """Rename *source* to *target* and rewrite every link pointing at it.

        Paths are relative to the working directory. When *target* is an
        existing directory, *source* is moved into it. ``success`` carries one
        value: ``False`` if the rename failed (nothing is rewritten), ``True``
        once the link scan has finished or was cancelled.
        """
        updated: Channel[Note] = Channel()
        success: Channel[bool] = Channel()
        errors: Channel[BaseException] = Channel()
        ctx.spawn(self._move(ctx, source, target, updated, success, errors), updated, success, errors)
        return updated, success, errors

    async def _move(
        self,
        ctx: Context,
        source: str | os.PathLike[str],
        target: str | os.PathLike[str],
        updated: Channel[Note],
        success: Channel[bool],
        errors: Channel[BaseException],
    ) -> None:
        source_path = os.path.abspath(os.path.join(self.dir, os.fspath(source)))
        target_path = os.path.abspath(os.path.join(self.dir, os.fspath(target)))
        if os.path.isdir(target_path):
            target_path = os.path.join(target_path, os.path.basename(os.path.normpath(source_path)))
        try:
            os.rename(source_path, target_path)
        except OSError as exc:
            await errors.send(exc)
            await success.send(False)
            return
        logger.debug("moved %s to %s", source_path, target_path)
        try:
            await self._rewrite_links(ctx, source_path, target_path, updated, errors)
        finally:
            success.send_nowait(True)

    async def _rewrite_links(
        self,
        ctx: Context,
        source: str,
        target: str,
        updated: Channel[Note],
        errors: Channel[BaseException],
    ) -> None:
        notes, walk_errors = self.all_notes(ctx)
        async with asyncio.TaskGroup() as group:
            group.create_task(pipe(walk_errors, errors))
            async for note in notes:
                try:
                    note.update_link(source, target)
                    written = note.save()
                except NOTE_ERRORS as exc:
                    await errors.send(exc)
                    continue
                if written:
                    logger.debug("%s: links updated", note.path)
                    await updated.send(note)
