"""Site graph: parent/child/sibling wiring over an id-keyed page arena.

Pages never point at each other directly. Every relation is looked up
through the graph by identity, so the parent/children/siblings accessors
are plain functions of the arena and a page.
"""

import logging
from itertools import chain
from typing import Iterator
from uuid import UUID

from staticcms.core import filenames
from staticcms.core.models import NBSP, Page

logger = logging.getLogger(__name__)

MDASH = "\u2014"


class SiteGraph:
    """Primary and duplicate pages plus their hierarchy."""

    def __init__(self, pages: dict[UUID, Page], duplicates: dict[UUID, Page] | None = None):
        self.pages = pages
        self.duplicates = duplicates or {}
        self.root_siblings: list[Page] = []
        self._children: dict[UUID, list[Page]] = {}

    def all_pages(self) -> Iterator[Page]:
        """Primary pages in ingestion order, then duplicates."""
        return chain(self.pages.values(), self.duplicates.values())

    # ------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------

    def attach(self) -> None:
        """Link every page to its parent.

        Dangling parent references and parent cycles degrade to root
        placement. Duplicates learn their parent but are never registered
        as children, so they stay out of other pages' navigation.
        """
        for page in self.all_pages():
            parent_id = page.parent_id
            if parent_id is None:
                continue
            parent = self.pages.get(parent_id)
            if parent is None:
                logger.warning(
                    "%s has non-existent parent [%s]: attached to root", page, parent_id
                )
                page.metadata.parent_id = None
                continue
            if not page.duplicate:
                self._children.setdefault(parent_id, []).append(page)
            logger.debug("Relation PARENT %s CHILD %s", parent, page)

        for page in self.all_pages():
            self._break_cycle(page)

        for children in self._children.values():
            children.sort(key=lambda p: p.sort_key)

    def _break_cycle(self, page: Page) -> None:
        seen = {page.id}
        current = page
        while current.parent_id is not None:
            if self.pages.get(current.parent_id) is page:
                logger.warning("%s closes a parent cycle: attached to root", page)
                self._detach(page)
                return
            if current.parent_id in seen:
                return
            seen.add(current.parent_id)
            current = self.pages[current.parent_id]

    def _detach(self, page: Page) -> None:
        siblings = self._children.get(page.parent_id, [])
        self._children[page.parent_id] = [p for p in siblings if p is not page]
        page.metadata.parent_id = None

    def compute_root_siblings(self) -> None:
        """Collect all parentless pages into one shared, ordered list."""
        roots: list[Page] = []
        for page in self.all_pages():
            if page.parent_id is not None:
                continue
            if any(root is page for root in roots):
                continue
            roots.append(page)
            logger.info("Added root %s", page)
        roots.sort(key=lambda p: p.sort_key)
        self.root_siblings = roots

    def resolve_index(self) -> None:
        """Keep at most one index claim per parent scope, first come first served."""
        claimed: dict[UUID | None, Page] = {}
        for page in self.all_pages():
            if not page.index:
                continue
            winner = claimed.get(page.parent_id)
            if winner is None:
                claimed[page.parent_id] = page
            else:
                logger.warning("%s loses index status to %s", page, winner)
                page.reset_index()

    # ------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------

    def lookup(self, page_id: UUID) -> Page | None:
        page = self.pages.get(page_id)
        if page is None:
            page = self.duplicates.get(page_id)
        return page

    def link_target(self, page_id: UUID) -> Page | None:
        """Return the page a ``page:`` link resolves to. Duplicates never qualify."""
        return self.pages.get(page_id)

    def content_owner(self, element_id: UUID) -> Page | None:
        """Return the page holding a content element with this id.

        Candidates are scanned in ascending page id order so the answer is
        reproducible when several pages carry the same element id.
        """
        for page in sorted(self.pages.values(), key=lambda p: str(p.id)):
            if element_id in page.content_ids:
                return page
        return None

    def parent(self, page: Page) -> Page | None:
        if page.parent_id is None:
            return None
        return self.pages.get(page.parent_id)

    def ancestors(self, page: Page, nearest_first: bool = True) -> list[Page]:
        result = []
        parent = self.parent(page)
        while parent is not None:
            result.append(parent)
            parent = self.parent(parent)
        if not nearest_first:
            result.reverse()
        return result

    def children(self, page: Page) -> list[Page]:
        if page.duplicate:
            return []
        return self._children.get(page.id, [])

    def siblings(self, page: Page) -> list[Page]:
        """Return the sibling set a page belongs to, itself included.

        Root pages all share the same list object.
        """
        parent = self.parent(page)
        if parent is None:
            return self.root_siblings
        return self.children(parent)

    def is_index(self, page: Page) -> bool:
        return page.parent_id is None and page.index

    def is_descendant(self, page: Page, ancestor: Page) -> bool:
        return any(p.id == ancestor.id for p in self.ancestors(page))

    # ------------------------------------------------------------
    # Naming
    # ------------------------------------------------------------

    def dynamic_filename(self, page: Page) -> str:
        """Return the page's output filename, computing it once."""
        if page._dynamic_filename is None:
            page._dynamic_filename = filenames.dynamic_filename(
                page.title, [p.title for p in self.ancestors(page)]
            )
        return page._dynamic_filename

    def title_trail(self, page: Page, show_topmost: bool = True) -> str:
        """Own title, a dash, then the ancestor path from the top down."""
        parent = self.parent(page)
        if parent is None:
            return page.title
        return f"{page.title}{NBSP}{MDASH} {self._trail(parent, show_topmost)}"

    def parent_title(self, page: Page, show_topmost: bool) -> str:
        parent = self.parent(page)
        if parent is None:
            return ""
        return self._trail(parent, show_topmost)

    def _trail(self, page: Page, show_topmost: bool) -> str:
        parent = self.parent(page)
        if parent is not None and (parent.parent_id is not None or show_topmost):
            return f"{self._trail(parent, show_topmost)}{NBSP}/ {page.title}"
        return page.title
