"""Exception hierarchy shared by every noteo module."""

from __future__ import annotations


class NoteoError(Exception):
    """Base class for all noteo errors."""


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class InvalidTagError(NoteoError, ValueError):
    def __init__(self, text: str) -> None:
        super().__init__(f"{text!r} is not a valid tag")
        self.text = text


class NoValueError(NoteoError, ValueError):
    def __init__(self, tag: str) -> None:
        super().__init__(f"tag {tag} is not name:value")
        self.tag = tag


class ParseError(NoteoError, ValueError):
    """A value could not be read as a number or a date."""

    def __init__(self, value: str, message: str | None = None) -> None:
        super().__init__(message or f"cannot parse {value!r}")
        self.value = value


class UnsupportedDateFormatError(ParseError):
    def __init__(self, value: str) -> None:
        super().__init__(value, f"not supported date format: {value}")


# ---------------------------------------------------------------------------
# Per-note errors
# ---------------------------------------------------------------------------


class FrontMatterError(NoteoError):
    """The front matter of a note could not be parsed."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


class LinkResolutionError(NoteoError):
    def __init__(self, path: str, link: str, reason: str) -> None:
        super().__init__(f"{path}: cannot resolve link {link!r}: {reason}")
        self.path = path
        self.link = link


class PredicateError(NoteoError):
    """A predicate raised while evaluating a note."""

    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(f"executing predicate failed on note {path}: {cause}")
        self.path = path
        self.__cause__ = cause


class ComparisonError(NoteoError):
    """A sort comparator raised while comparing two notes."""

    def __init__(self, first: str, second: str, cause: BaseException) -> None:
        super().__init__(f"comparing notes failed {first} and {second}: {cause}")
        self.paths = (first, second)
        self.__cause__ = cause


# ---------------------------------------------------------------------------
# Repository setup
# ---------------------------------------------------------------------------


class RepositoryNotFoundError(NoteoError):
    def __init__(self, directory: str) -> None:
        super().__init__(f"repo not initialized: .noteo.yml file not found in {directory} or any parent")
        self.directory = directory


class RepositoryExistsError(NoteoError):
    def __init__(self, root: str) -> None:
        super().__init__(f"repository already initialized at {root}")
        self.root = root


class NotANoteError(NoteoError, ValueError):
    def __init__(self, file: str) -> None:
        super().__init__(f"{file} has no *.md extension")
        self.file = file


# Errors a single note can raise while being read, edited or written.
NOTE_ERRORS = (NoteoError, OSError, UnicodeDecodeError)
