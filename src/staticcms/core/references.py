"""Cross-reference resolution.

Two link families live in page content:

* ``page:{uuid}`` anchors point at another page. They are rewritten to the
  target's dynamic filename once the whole site graph is known.
* ``ref:{url}`` anchors are bibliography-style references. Each page gets a
  numbered reference table, built in order of first appearance, with
  ``ref:note:{id}`` pulling an extracted note into the table. Notes may cite
  further references, so collection repeats over referenced notes until no
  new reference shows up.
"""

import logging
from typing import TYPE_CHECKING
from uuid import UUID

from bs4 import Tag

from staticcms.core import dom
from staticcms.core.dom import AllOf, AttrPrefix, ByTag, HtmlAdapter
from staticcms.core.models import Page

if TYPE_CHECKING:
    from staticcms.core.hierarchy import SiteGraph

logger = logging.getLogger(__name__)

PAGE_SCHEME = "page:"
REF_SCHEME = "ref:"
NOTE_SCHEME = "note:"

REFERENCE_LIST_ID = "reference-list"
REFERENCE_ID_PREFIX = "scms_reference_"
NOT_FOUND_TEXT = "[NOT FOUND]"

ANCHOR_REF = AllOf(ByTag("a"), AttrPrefix("href", REF_SCHEME))


class ReferenceCollector:
    """Builds the numbered reference table of one page."""

    def __init__(self, page: Page, adapter: HtmlAdapter):
        self.page = page
        self.adapter = adapter
        self.urls: list[str] = []
        self.block: Tag | None = None
        self.table: Tag | None = None

    def collect(self) -> Tag | None:
        """Number every reference reachable from the content.

        Returns the reference block, or None when the page cites nothing.
        """
        self.process(self.page.content)
        if self.table is None:
            return None

        expanded: set[str] = set()
        previous = -1
        while len(self.urls) != previous:
            previous = len(self.urls)
            for note_id, note in self.page.notes.items():
                if note_id not in expanded and NOTE_SCHEME + note_id in self.urls:
                    expanded.add(note_id)
                    self.process(note)
        return self.block

    def process(self, root: Tag) -> None:
        for anchor in dom.find_all(root, ANCHOR_REF):
            url = dom.attr_value(anchor, "href")[len(REF_SCHEME):]
            if url in self.urls:
                number = self.urls.index(url) + 1
            else:
                note = None
                if url.startswith(NOTE_SCHEME):
                    note = self.page.notes.get(url[len(NOTE_SCHEME):])
                    if note is None:
                        logger.debug("No note for reference %s in %s", url, self.page)
                        continue
                self.urls.append(url)
                number = len(self.urls)
                self._add_row(number, url, anchor, note)

            anchor["href"] = f"#{REFERENCE_ID_PREFIX}{number}"
            anchor["class"] = "reference-ptr"
            dom.set_text(anchor, str(number))

    def _add_row(self, number: int, url: str, anchor: Tag, note: Tag | None) -> None:
        if self.table is None:
            self.block = self.adapter.new_tag("div", {"class": "reference references"})
            self.table = self.adapter.append(
                self.block,
                "table",
                {"class": "reference reference-list", "id": REFERENCE_LIST_ID},
            )
        row = self.adapter.append(
            self.table,
            "tr",
            {"class": "reference reference-item", "id": f"{REFERENCE_ID_PREFIX}{number}"},
        )
        self.adapter.append(
            row, "td", {"class": "reference reference-item-number"}, str(number)
        )
        content = self.adapter.append(row, "td", {"class": "reference reference-item-content"})
        if note is None:
            caption = dom.text_of(anchor)
            self.adapter.append(
                content,
                "a",
                {"href": url, "class": "reference reference-item-content-link"},
                caption or url,
            )
        else:
            note["class"] = "reference reference-item-content-link"
            content.append(note)


def collect_references(page: Page, adapter: HtmlAdapter) -> Tag | None:
    """Number the ``ref:`` anchors of a page and build its reference block."""
    return ReferenceCollector(page, adapter).collect()


def substitute_text(anchor: Tag, text: str) -> None:
    """Apply caption substitution rules to a resolved page link.

    Empty captions and ``:title`` become ``text``, ``:title-lower`` becomes
    its lower-cased form, and anything else is left alone.
    """
    caption = dom.text_of(anchor)
    if not caption or caption == ":title":
        dom.set_text(anchor, text)
    elif caption == ":title-lower":
        dom.set_text(anchor, text.lower())


def replace_page_references(page: Page, graph: "SiteGraph") -> None:
    """Rewrite the ``page:`` anchors of a page against the site graph.

    Ids are resolved to pages first, then to content elements of any page,
    and anything left over points at a guessed permalink labelled
    ``[NOT FOUND]``.
    """
    for target_id, anchors in page.page_refs.items():
        target = graph.link_target(target_id)
        if target is not None:
            href = graph.dynamic_filename(target)
            for anchor in anchors:
                anchor["href"] = href
                substitute_text(anchor, target.title)
            continue

        owner = graph.content_owner(target_id)
        if owner is not None:
            href = f"{graph.dynamic_filename(owner)}#{target_id}"
            for anchor in anchors:
                anchor["href"] = href
                substitute_text(anchor, owner.content_ids[target_id])
            continue

        logger.warning("Unresolved page reference %s in %s", target_id, page)
        for anchor in anchors:
            anchor["href"] = _guess_permalink(target_id)
            dom.set_text(anchor, NOT_FOUND_TEXT)


def _guess_permalink(target_id: UUID) -> str:
    return f"./{target_id}.html"
