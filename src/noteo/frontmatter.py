"""YAML front-matter document: ordered keys, ``Tags`` and ``Created``.

The document is parsed at most once. Unknown keys keep their order and
spelling so that an unmodified document serializes back to the same YAML,
except for ``Tags``, which is always written as one space-separated string.
``Tags`` tokens are taken from the YAML text as written, so ``on`` or ``010``
are tags, not a bool or a number.
"""

from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, Iterator

import yaml

from noteo.date import parse_absolute
from noteo.errors import FrontMatterError, InvalidTagError, NoValueError, ParseError
from noteo.lazy import LazyCell
from noteo.parser import FENCE, front_matter_yaml
from noteo.tag import Tag

logger = logging.getLogger(__name__)

TAGS_KEY = "Tags"
CREATED_KEY = "Created"

_TAG_SEPARATOR_RE = re.compile(r"[,\s]+")
_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"
_NULL_TAG = "tag:yaml.org,2002:null"


# ---------------------------------------------------------------------------
# YAML dialect: timestamps stay strings in both directions
# ---------------------------------------------------------------------------


def _without_timestamps(resolvers: dict) -> dict:
    return {
        first: [(tag, regexp) for tag, regexp in entries if tag != _TIMESTAMP_TAG]
        for first, entries in resolvers.items()
    }


class _Loader(yaml.SafeLoader):
    yaml_implicit_resolvers = _without_timestamps(yaml.SafeLoader.yaml_implicit_resolvers)


class _Dumper(yaml.SafeDumper):
    yaml_implicit_resolvers = _without_timestamps(yaml.SafeDumper.yaml_implicit_resolvers)


# ---------------------------------------------------------------------------
# Ordered mapping
# ---------------------------------------------------------------------------


def _fold(key: Any) -> str:
    return str(key).lower()


class OrderedMapping:
    """Association list of ``(key, value)`` pairs with case-insensitive lookup."""

    def __init__(self, items: Iterable[tuple[Any, Any]] = ()) -> None:
        self._items: list[tuple[Any, Any]] = list(items)

    def _index(self, key: Any) -> int | None:
        folded = _fold(key)
        for index, (existing, _) in enumerate(self._items):
            if _fold(existing) == folded:
                return index
        return None

    def get(self, key: Any, default: Any = None) -> Any:
        index = self._index(key)
        return default if index is None else self._items[index][1]

    def set(self, key: Any, value: Any) -> None:
        """Replace the value in place (keeping the stored key spelling) or append."""
        index = self._index(key)
        if index is None:
            self._items.append((key, value))
        else:
            self._items[index] = (self._items[index][0], value)

    def items(self) -> list[tuple[Any, Any]]:
        return list(self._items)

    def __contains__(self, key: object) -> bool:
        return self._index(key) is not None

    def __iter__(self) -> Iterator[Any]:
        return (key for key, _ in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"OrderedMapping({self._items!r})"


def _represent_ordered_mapping(dumper: yaml.SafeDumper, data: OrderedMapping) -> yaml.Node:
    return dumper.represent_mapping("tag:yaml.org,2002:map", data.items())


_Dumper.add_representer(OrderedMapping, _represent_ordered_mapping)


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _string_tags(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(item) for item in value]
    if isinstance(value, dict):
        raise ValueError("Tags must be a string or a list")
    return [token for token in _TAG_SEPARATOR_RE.split(str(value)) if token]


def parse_tags(value: Any) -> list[Tag]:
    """Read the ``Tags`` value: a separated string or a list of strings."""
    return [Tag.parse(token) for token in _string_tags(value)]


def _tags_node(root: yaml.Node | None) -> yaml.Node | None:
    """The value node of the last ``Tags`` key, matched case-insensitively."""
    found = None
    if isinstance(root, yaml.MappingNode):
        for key, value in root.value:
            if isinstance(key, yaml.ScalarNode) and _fold(key.value) == _fold(TAGS_KEY):
                found = value
    return found


def _raw_tags(node: yaml.Node | None) -> Any:
    """Scalar text of the ``Tags`` node as written, before YAML resolves it.

    ``Tags: on`` stays ``"on"`` instead of becoming a bool, and ``010`` stays
    ``"010"`` instead of becoming an int.
    """
    if node is None:
        return None
    if isinstance(node, yaml.ScalarNode):
        return None if node.tag == _NULL_TAG else node.value
    if isinstance(node, yaml.SequenceNode):
        items = []
        for item in node.value:
            if not isinstance(item, yaml.ScalarNode):
                raise ValueError("Tags list items must be strings")
            items.append(item.value)
        return items
    raise ValueError("Tags must be a string or a list")


@dataclass
class _Document:
    mapping: OrderedMapping
    created: datetime | None = None
    tags: list[Tag] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


class FrontMatter:
    """Lazily parsed front matter of one note.

    Parameters
    ----------
    path:
        Note path, used to attribute errors.
    original:
        Callable returning the raw front-matter block (fences included);
        called at most once.
    """

    def __init__(self, path: str, original: Callable[[], str]) -> None:
        self.path = path
        self._original = original
        self._document: LazyCell[_Document] = LazyCell(self._parse)

    def _parse(self) -> _Document:
        text = front_matter_yaml(self._original())
        try:
            root = yaml.compose(text, Loader=_Loader)
            loaded = yaml.load(text, Loader=_Loader)
        except yaml.YAMLError as exc:
            raise FrontMatterError(self.path, f"YAML front matter unmarshal failed: {exc}") from exc
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise FrontMatterError(self.path, "YAML front matter is not a mapping")

        document = _Document(OrderedMapping(loaded.items()))
        if TAGS_KEY in document.mapping:
            try:
                document.tags = parse_tags(_raw_tags(_tags_node(root)))
            except (InvalidTagError, ValueError) as exc:
                raise FrontMatterError(self.path, str(exc)) from exc
        created = document.mapping.get(CREATED_KEY)
        if created is not None:
            try:
                document.created = parse_absolute(str(created))
            except ParseError as exc:
                raise FrontMatterError(self.path, f"parse failed: {exc}") from exc
        logger.debug("%s: parsed front matter with %d keys", self.path, len(document.mapping))
        return document

    def ensure_parsed(self) -> None:
        """Parse on first call; re-raise the first failure on every later call."""
        self._document.get()

    @property
    def created(self) -> datetime | None:
        return self._document.get().created

    @property
    def tags(self) -> list[Tag]:
        return list(self._document.get().tags)

    def set_tag(self, new_tag: Tag) -> None:
        """Replace the tag with the same name in place, or append it.

        A date-valued tag is stored in its absolute form.
        """
        document = self._document.get()
        try:
            new_tag = new_tag.make_date_absolute()
        except (NoValueError, ParseError):
            # not a date, stored as given
            pass
        for index, old_tag in enumerate(document.tags):
            if old_tag.name == new_tag.name:
                document.tags[index] = new_tag
                return
        document.tags.append(new_tag)

    def remove_tag(self, tag: Tag) -> None:
        document = self._document.get()
        if tag in document.tags:
            document.tags.remove(tag)

    def remove_tag_regex(self, regex: re.Pattern[str]) -> None:
        document = self._document.get()
        for index, old_tag in enumerate(document.tags):
            if regex.search(str(old_tag)):
                del document.tags[index]
                return

    def marshal(self) -> str:
        document = self._document.get()
        serialized_tags = " ".join(str(t) for t in document.tags)
        if serialized_tags or TAGS_KEY in document.mapping:
            document.mapping.set(TAGS_KEY, serialized_tags)
        if not document.mapping:
            return ""
        body = yaml.dump(
            document.mapping,
            Dumper=_Dumper,
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
            width=sys.maxsize,
        )
        return f"{FENCE}\n{body}{FENCE}\n"
