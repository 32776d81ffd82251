"""noteo: command line note-taking assistant over a tree of markdown notes."""

__version__ = "0.3.0"

from noteo.errors import NoteoError
from noteo.note import Note
from noteo.repository import Repository
from noteo.stream import Channel, Context
from noteo.tag import Tag

__all__ = [
    "Channel",
    "Context",
    "Note",
    "NoteoError",
    "Repository",
    "Tag",
    "__version__",
]
