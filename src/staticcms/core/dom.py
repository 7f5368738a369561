"""HTML document adapter built on BeautifulSoup.

Parsing and serialization go through an explicit ``HtmlAdapter`` instance
that is handed to every stage of the pipeline. Node selection uses a small
closed set of predicate types evaluated by ``matches``.
"""

import re
from dataclasses import dataclass
from typing import Iterator

from bs4 import BeautifulSoup, Tag

UUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


@dataclass(frozen=True)
class ByTag:
    """Matches elements by tag name, case-insensitively."""

    names: tuple[str, ...]

    def __init__(self, *names: str):
        object.__setattr__(self, "names", tuple(n.lower() for n in names))


@dataclass(frozen=True)
class AttrEquals:
    """Matches elements whose attribute equals a literal value."""

    name: str
    value: str
    case_sensitive: bool = True


@dataclass(frozen=True)
class AttrPrefix:
    """Matches elements whose attribute starts with a prefix."""

    name: str
    prefix: str


@dataclass(frozen=True)
class AttrMatches:
    """Matches elements whose whole attribute value matches a pattern."""

    name: str
    pattern: re.Pattern


@dataclass(frozen=True)
class AllOf:
    """Matches when every nested predicate matches."""

    predicates: tuple

    def __init__(self, *predicates):
        object.__setattr__(self, "predicates", predicates)


Predicate = ByTag | AttrEquals | AttrPrefix | AttrMatches | AllOf


def attr_value(tag: Tag, name: str) -> str | None:
    """Return an attribute as a plain string, joining multi-valued ones."""
    value = tag.get(name)
    if isinstance(value, list):
        return " ".join(value)
    return value


def matches(predicate: Predicate, tag) -> bool:
    """Evaluate a predicate against a node. Non-element nodes never match."""
    if not isinstance(tag, Tag):
        return False
    if isinstance(predicate, ByTag):
        return tag.name is not None and tag.name.lower() in predicate.names
    if isinstance(predicate, AllOf):
        return all(matches(p, tag) for p in predicate.predicates)

    value = attr_value(tag, predicate.name)
    if value is None:
        return False
    if isinstance(predicate, AttrEquals):
        if predicate.case_sensitive:
            return value == predicate.value
        return value.lower() == predicate.value.lower()
    if isinstance(predicate, AttrPrefix):
        return value.startswith(predicate.prefix)
    if isinstance(predicate, AttrMatches):
        return predicate.pattern.match(value) is not None
    raise TypeError(f"Unknown predicate: {predicate!r}")


def iter_tags(root: Tag) -> Iterator[Tag]:
    """Yield root and all of its descendant elements in document order."""
    if not isinstance(root, BeautifulSoup):
        yield root
    yield from root.find_all(True)


def find_all(root: Tag, predicate: Predicate) -> list[Tag]:
    """Return every matching element below (and including) root.

    The result is a snapshot, so callers may mutate the tree while
    iterating over it.
    """
    return [tag for tag in iter_tags(root) if matches(predicate, tag)]


def find_first(root: Tag, predicate: Predicate) -> Tag | None:
    for tag in iter_tags(root):
        if matches(predicate, tag):
            return tag
    return None


def first_child(root: Tag, predicate: Predicate) -> Tag | None:
    """Return the first direct child element of root that matches."""
    for child in root.children:
        if matches(predicate, child):
            return child
    return None


def text_of(tag: Tag) -> str:
    """Return the whitespace-normalized text content of an element."""
    return " ".join(tag.get_text().split())


def set_text(tag: Tag, text: str) -> None:
    """Replace all children of an element with a single text node."""
    tag.string = text


class HtmlAdapter:
    """Stateless parse/serialize capability for one run."""

    def __init__(self, parser: str = "lxml"):
        self.parser = parser
        self._factory = BeautifulSoup("", parser)

    def parse(self, data: bytes | str) -> BeautifulSoup:
        return BeautifulSoup(data, self.parser)

    def serialize(self, node) -> str:
        return str(node)

    def new_tag(
        self,
        name: str,
        attrs: dict[str, str] | None = None,
        text: str | None = None,
    ) -> Tag:
        tag = self._factory.new_tag(name, attrs=attrs or {})
        if text is not None:
            tag.string = text
        return tag

    def append(
        self,
        parent: Tag,
        name: str,
        attrs: dict[str, str] | None = None,
        text: str | None = None,
    ) -> Tag:
        """Create a new element, append it to parent and return it."""
        tag = self.new_tag(name, attrs, text)
        parent.append(tag)
        return tag
