"""Extraction of a Page from a parsed source document."""

import copy
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from uuid import UUID

from bs4 import BeautifulSoup, Tag

from staticcms.core import dom
from staticcms.core.dom import AllOf, AttrEquals, AttrMatches, AttrPrefix, ByTag, HtmlAdapter
from staticcms.core.errors import PageError
from staticcms.core.models import Page, PageMetadata
from staticcms.core.references import PAGE_SCHEME, collect_references

logger = logging.getLogger(__name__)

META = ByTag("meta")
META_UUID = AllOf(META, AttrEquals("name", "scms-uuid"))
META_PARENT_UUID = AllOf(META, AttrEquals("name", "scms-parent-uuid"))
META_MATH = AllOf(META, AttrEquals("name", "scms-uses-math"))
META_INDEX = AllOf(META, AttrEquals("name", "scms-is-index"))
TITLE = ByTag("title")

NOTE = ByTag("aside")
SUMMARY_TITLE = AllOf(ByTag("h1"), AttrEquals("id", "article-summary-title", case_sensitive=False))
LATEST_ARTICLES = AllOf(ByTag("section"), AttrEquals("id", "latest-articles", case_sensitive=False))
ANCHOR_PAGE = AllOf(ByTag("a"), AttrPrefix("href", PAGE_SCHEME))
ELEMENT_WITH_ID = AllOf(ByTag("h1", "h2", "h3", "dt"), AttrMatches("id", dom.UUID_PATTERN))

# Values of the parent marker that mean "no parent".
NULL_PATTERN = re.compile(r"^(null|none|root)$", re.IGNORECASE)


def read_page(path: Path, root_path: Path, adapter: HtmlAdapter) -> Page:
    """Parse one source file into a Page.

    Raises:
        PageError: The document is structurally invalid.
        pydantic.ValidationError: The head metadata is invalid.
        OSError: The file cannot be read.
    """
    soup = adapter.parse(path.read_bytes())
    return page_from_document(soup, path, root_path, adapter)


def page_from_document(
    soup: BeautifulSoup,
    path: Path,
    root_path: Path,
    adapter: HtmlAdapter,
) -> Page:
    if not path.resolve().is_relative_to(root_path.resolve()):
        raise PageError(f"{path}: path not relative to root-path {root_path}")

    head = _unique_element(soup, "head")
    metadata = PageMetadata(
        id=_identifier(head, META_UUID, "page identifier", required=True),
        title=_title(head),
        parent_id=_identifier(head, META_PARENT_UUID, "parent identifier", required=False),
        math=_flag(head, META_MATH),
        index=_flag(head, META_INDEX),
    )
    if metadata.index:
        logger.debug("Index candidate %s [%s]", metadata.title, metadata.id)

    body = _unique_element(soup, "body")
    content = adapter.new_tag("article")
    notes: dict[str, Tag] = {}
    latest_articles = None
    summary_title = None

    for node in list(body.children):
        clone = copy.copy(node)
        if dom.matches(NOTE, clone) and dom.attr_value(clone, "id"):
            notes[dom.attr_value(clone, "id")] = clone
            continue
        if summary_title is None and dom.matches(SUMMARY_TITLE, clone):
            summary_title = dom.text_of(clone)
        if latest_articles is None and dom.matches(LATEST_ARTICLES, clone):
            latest_articles = clone
        content.append(clone)

    modified, created = _file_times(path)
    page = Page(
        metadata=metadata,
        source_path=path,
        root_path=root_path,
        content=content,
        notes=notes,
        latest_articles=latest_articles,
        summary_title=summary_title or metadata.title,
        time_modified=modified,
        time_created=created,
    )
    page.references = collect_references(page, adapter)
    page.page_refs = _collect_page_refs(page)
    page.content_ids = _collect_content_ids(page)
    return page


def _unique_element(soup: BeautifulSoup, name: str) -> Tag:
    found = soup.find_all(name)
    if not found:
        raise PageError(f'Expected element with tag "{name}"')
    if len(found) > 1:
        raise PageError(f'Expected exactly one element with tag "{name}"')
    return found[0]


def _meta_value(head: Tag, predicate) -> str | None:
    meta = dom.first_child(head, predicate)
    if meta is None:
        return None
    return dom.attr_value(meta, "value") or None


def _identifier(head: Tag, predicate, description: str, required: bool) -> UUID | None:
    text = _meta_value(head, predicate)
    if text is None:
        if required:
            raise PageError(f"Missing {description}")
        return None
    try:
        return UUID(text)
    except ValueError as e:
        if not required and NULL_PATTERN.match(text):
            return None
        raise PageError(f"While parsing {description}: {e}") from e


def _flag(head: Tag, predicate) -> bool:
    value = _meta_value(head, predicate)
    return value is not None and value.strip().lower() == "true"


def _title(head: Tag) -> str:
    title = dom.first_child(head, TITLE)
    text = dom.text_of(title) if title is not None else ""
    if not text:
        raise PageError("Title must not be empty")
    return text


def _collect_page_refs(page: Page) -> dict[UUID, list[Tag]]:
    refs: dict[UUID, list[Tag]] = {}
    roots = [page.content] + ([page.references] if page.references is not None else [])
    for root in roots:
        for anchor in dom.find_all(root, ANCHOR_PAGE):
            value = dom.attr_value(anchor, "href")[len(PAGE_SCHEME):]
            try:
                target = UUID(value)
            except ValueError as e:
                raise PageError(f"A href with scheme {PAGE_SCHEME} requires a uuid: {value!r}") from e
            refs.setdefault(target, []).append(anchor)
    return refs


def _collect_content_ids(page: Page) -> dict[UUID, str]:
    content_ids: dict[UUID, str] = {}
    for element in dom.find_all(page.content, ELEMENT_WITH_ID):
        element_id = UUID(dom.attr_value(element, "id"))
        if element_id in content_ids:
            logger.warning(
                "Duplicate ID %s found in %s element of %s", element_id, element.name, page
            )
        else:
            content_ids[element_id] = dom.text_of(element)
    return content_ids


def _file_times(path: Path) -> tuple[datetime, datetime]:
    """Return (modified, created) times, falling back to the current clock."""
    try:
        stat = path.stat()
    except OSError:
        now = datetime.now(timezone.utc)
        logger.warning("Cannot determine file times for %s", path)
        return now, now
    created = getattr(stat, "st_birthtime", stat.st_ctime)
    return (
        datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        datetime.fromtimestamp(created, tz=timezone.utc),
    )
