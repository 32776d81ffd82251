"""CLI entry point for noteo."""

from __future__ import annotations

import asyncio
import logging
import os
import re
import shlex
import subprocess
import sys
import tempfile
from typing import Iterable, Iterator

import click

from noteo import __version__, date
from noteo.config import editor_command, setup_logging
from noteo.errors import NOTE_ERRORS, NoteoError, RepositoryNotFoundError
from noteo.output import DEFAULT_OUTPUT, Formatter, make_formatter, parse_date_format
from noteo.pipeline import filter as predicates
from noteo.pipeline import top as comparators
from noteo.pipeline.filter import Predicate, filter_notes
from noteo.pipeline.top import Less, top
from noteo.repository import Repository, note_template
from noteo.stream import Context, drain_errors
from noteo.tag import Tag

logger = logging.getLogger(__name__)


def _repository(directory: str | None = None) -> Repository:
    work_dir = os.getcwd()
    if directory:
        work_dir = os.path.join(work_dir, directory)
    try:
        return Repository.for_work_dir(work_dir)
    except RepositoryNotFoundError:
        raise click.ClickException(
            "not a noteo repository (or any of the parent directories)\nPlease run: noteo init"
        )


def _file_names(files: Iterable[str], stdin: bool) -> Iterator[str]:
    if not stdin:
        yield from files
        return
    for line in click.get_text_stream("stdin"):
        name = line.rstrip("\r\n")
        if name:
            yield name


def _updated(path: str) -> None:
    click.echo(f"{click.style(path, fg='cyan')} updated")


@click.group()
@click.version_option(version=__version__, prog_name="noteo")
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR (default: $NOTEO_LOG_LEVEL)")
def cli(log_level: str | None):
    """Command line note-taking assistant."""
    setup_logging(log_level)


@cli.command()
def init():
    """Initialize a noteo repository in the current directory."""
    try:
        config_file = Repository.init(".")
    except NoteoError as e:
        raise click.ClickException(str(e))
    click.echo(f"Repository initialized. Configuration file saved at {config_file}")


# ---------------------------------------------------------------------------
# add
# ---------------------------------------------------------------------------


def _text_from_editor(editor: str, initial: str) -> str:
    with tempfile.NamedTemporaryFile("w", suffix=".md", encoding="utf-8", delete=False) as fh:
        fh.write(initial)
        path = fh.name
    try:
        result = subprocess.run([*shlex.split(editor), path])
        if result.returncode != 0:
            raise click.ClickException(f"Editor exited with code {result.returncode}")
        with open(path, encoding="utf-8", newline="") as fh:
            return fh.read()
    finally:
        os.unlink(path)


@cli.command()
@click.argument("text", nargs=-1)
def add(text: tuple[str, ...]):
    """Add a new note in the current directory, from TEXT or the editor."""
    repo = _repository()
    template = note_template(date.now())
    try:
        if text:
            content = template + " ".join(text)
        else:
            initial = template + "\n"
            content = _text_from_editor(editor_command(repo.config()), initial)
            if content == initial:
                click.echo("no new file added")
                return
        file = repo.add(content)
    except (OSError, ValueError) as e:
        raise click.ClickException(str(e))
    click.echo(f"{click.style(file, fg='cyan')} created")


# ---------------------------------------------------------------------------
# ls
# ---------------------------------------------------------------------------


def _build_predicates(
    tags: tuple[str, ...],
    no_tag: tuple[str, ...],
    tag_grep: tuple[str, ...],
    tag_greater: tuple[str, ...],
    tag_lower: tuple[str, ...],
    tag_after: tuple[str, ...],
    tag_before: tuple[str, ...],
    no_tags: bool,
    modified_after: str | None,
    modified_before: str | None,
    created_after: str | None,
    created_before: str | None,
    grep: str | None,
) -> list[Predicate]:
    result: list[Predicate] = []
    result += [predicates.tag(t) for t in tags]
    result += [predicates.no_tag(t) for t in no_tag]
    result += [predicates.tag_grep(expr) for expr in tag_grep]
    result += [predicates.tag_greater(t) for t in tag_greater]
    result += [predicates.tag_lower(t) for t in tag_lower]
    result += [predicates.tag_after(t) for t in tag_after]
    result += [predicates.tag_before(t) for t in tag_before]
    if no_tags:
        result.append(predicates.no_tags())
    if modified_after:
        result.append(predicates.modified_after(modified_after))
    if modified_before:
        result.append(predicates.modified_before(modified_before))
    if created_after:
        result.append(predicates.created_after(created_after))
    if created_before:
        result.append(predicates.created_before(created_before))
    if grep:
        result.append(predicates.grep(grep))
    return result


def _sort_order(sort_by_created: bool, sort_by_tag_date: str | None, sort_by_tag_number: str | None, reverse: bool) -> Less:
    if sort_by_created:
        return comparators.created_asc if reverse else comparators.created_desc
    if sort_by_tag_date:
        if reverse:
            return comparators.tag_date_asc(sort_by_tag_date)
        return comparators.tag_date_desc(sort_by_tag_date)
    if sort_by_tag_number:
        if reverse:
            return comparators.tag_number_asc(sort_by_tag_number)
        return comparators.tag_number_desc(sort_by_tag_number)
    return comparators.modified_asc if reverse else comparators.modified_desc


async def _list_notes(
    repo: Repository, filters: list[Predicate], limit: int, less: Less, formatter: Formatter
) -> None:
    async with Context() as ctx:
        notes, walk_errors = repo.notes(ctx)
        filtered, filter_errors = filter_notes(ctx, notes, *filters)
        ordered, top_errors = top(ctx, limit, filtered, less)
        drains = drain_errors(ctx, walk_errors, filter_errors, top_errors)
        click.echo(formatter.header(), nl=False)
        async for note in ordered:
            try:
                text = formatter.note(note)
            except NOTE_ERRORS as e:
                logger.warning("skipping: %s", e)
                continue
            click.echo(text, nl=False)
        click.echo(formatter.footer(), nl=False)
        await asyncio.gather(*drains)


@cli.command()
@click.argument("directory", required=False)
@click.option("--tag", "-t", "tags", multiple=True, metavar="NAME", help="Notes having the tag (repeatable)")
@click.option("--no-tag", multiple=True, metavar="NAME", help="Notes not having the tag (repeatable)")
@click.option("--tag-grep", multiple=True, metavar="REGEX", help="Notes having a tag matching the regex (repeatable)")
@click.option("--tag-greater", multiple=True, metavar="NAME:NUMBER", help='e.g. "priority:1" (repeatable)')
@click.option("--tag-lower", multiple=True, metavar="NAME:NUMBER", help='e.g. "priority:3" (repeatable)')
@click.option("--tag-after", multiple=True, metavar="NAME:DATE", help='e.g. "deadline:2020-08-01" (repeatable)')
@click.option("--tag-before", multiple=True, metavar="NAME:DATE", help='e.g. "deadline:today" (repeatable)')
@click.option("--no-tags", is_flag=True, help="Notes without any tag")
@click.option("--modified-after", metavar="DATE")
@click.option("--modified-before", metavar="DATE")
@click.option("--created-after", metavar="DATE")
@click.option("--created-before", metavar="DATE")
@click.option("--grep", metavar="REGEX", help="Notes whose text matches the regex")
@click.option("--limit", "-l", type=click.IntRange(min=0), default=sys.maxsize, show_default=False)
@click.option("--sort-by-created", is_flag=True, help="Sort by created date descending")
@click.option("--sort-by-tag-date", metavar="NAME", help="Sort by the date in the named tag, descending")
@click.option("--sort-by-tag-number", metavar="NAME", help="Sort by the number in the named tag, descending")
@click.option("--reverse", is_flag=True, help="Make sorting ascending")
@click.option("--quiet", "-q", is_flag=True, help="Show only file names")
@click.option("--output", "-o", default=DEFAULT_OUTPUT, show_default=True, help="table=COLUMNS, wide, json or yaml")
@click.option("--date", "date_format", default=None, help="relative (default), iso8601 or rfc2822")
def ls(
    directory: str | None,
    tags: tuple[str, ...],
    no_tag: tuple[str, ...],
    tag_grep: tuple[str, ...],
    tag_greater: tuple[str, ...],
    tag_lower: tuple[str, ...],
    tag_after: tuple[str, ...],
    tag_before: tuple[str, ...],
    no_tags: bool,
    modified_after: str | None,
    modified_before: str | None,
    created_after: str | None,
    created_before: str | None,
    grep: str | None,
    limit: int,
    sort_by_created: bool,
    sort_by_tag_date: str | None,
    sort_by_tag_number: str | None,
    reverse: bool,
    quiet: bool,
    output: str,
    date_format: str | None,
):
    """List notes summary."""
    repo = _repository(directory)
    try:
        filters = _build_predicates(
            tags, no_tag, tag_grep, tag_greater, tag_lower, tag_after, tag_before,
            no_tags, modified_after, modified_before, created_after, created_before, grep,
        )
        formatter = make_formatter(output, quiet, parse_date_format(date_format))
    except (ValueError, re.error) as e:
        raise click.ClickException(str(e))
    less = _sort_order(sort_by_created, sort_by_tag_date, sort_by_tag_number, reverse)
    asyncio.run(_list_notes(repo, filters, limit, less, formatter))


# ---------------------------------------------------------------------------
# mv
# ---------------------------------------------------------------------------


async def _move(repo: Repository, source: str, target: str) -> bool:
    async with Context() as ctx:
        updated, success, errors = repo.move(ctx, source, target)
        drains = drain_errors(ctx, errors)
        async for note in updated:
            _updated(note.path)
        moved = await success.collect()
        await asyncio.gather(*drains)
    return moved == [True]


@cli.command()
@click.argument("source")
@click.argument("target")
def mv(source: str, target: str):
    """Move a note or directory and update links pointing at it."""
    repo = _repository()
    if not asyncio.run(_move(repo, source, target)):
        raise click.ClickException("move failed")
    click.echo("File moved")


# ---------------------------------------------------------------------------
# tag
# ---------------------------------------------------------------------------


@cli.group()
def tag():
    """Manage note tags."""


@tag.command("set")
@click.option("--name", "-n", required=True, help="Tag without spaces, optionally name:number-or-date")
@click.option("--stdin", is_flag=True, help="Read file names from standard input")
@click.argument("files", nargs=-1)
def tag_set(name: str, stdin: bool, files: tuple[str, ...]):
    """Set a tag on notes."""
    try:
        Tag.parse(name)
    except ValueError as e:
        raise click.ClickException(str(e))
    repo = _repository()
    for file in _file_names(files, stdin):
        try:
            written = repo.tag_file(file, name)
        except NOTE_ERRORS as e:
            click.echo(f"skipping: {e}", err=True)
            continue
        if written:
            _updated(file)


@tag.command("rm")
@click.option("--name", "-n", default=None, help="Tag to remove")
@click.option("--grep", default=None, metavar="REGEX", help="Remove the first tag matching the regex")
@click.option("--stdin", is_flag=True, help="Read file names from standard input")
@click.argument("files", nargs=-1)
def tag_rm(name: str | None, grep: str | None, stdin: bool, files: tuple[str, ...]):
    """Remove tags from notes."""
    if not name and not grep:
        raise click.ClickException("no name given using -n flag or regex with --grep flag")
    try:
        if name:
            Tag.parse(name)
        else:
            re.compile(grep)
    except (ValueError, re.error) as e:
        raise click.ClickException(str(e))
    repo = _repository()
    for file in _file_names(files, stdin):
        try:
            if name:
                written = repo.untag_file(file, name)
            else:
                written = repo.untag_file_regex(file, grep)
        except NOTE_ERRORS as e:
            click.echo(f"skipping: {e}", err=True)
            continue
        if written:
            _updated(file)


async def _list_tags(repo: Repository) -> None:
    async with Context() as ctx:
        tags, errors = repo.tags(ctx)
        drains = drain_errors(ctx, errors)
        async for t in tags:
            click.echo(str(t))
        await asyncio.gather(*drains)


@tag.command("ls")
@click.argument("directory", required=False)
def tag_ls(directory: str | None):
    """List all tags."""
    asyncio.run(_list_tags(_repository(directory)))


if __name__ == "__main__":
    cli()
