"""Source tree ingestion.

Walks the source directory, turns HTML files into Pages and sorts them into
a primary and a duplicate collection. Everything else is queued for a
verbatim copy.
"""

import logging
import re
from pathlib import Path
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from staticcms.core.dom import HtmlAdapter
from staticcms.core.errors import PageError, SiteError
from staticcms.core.models import Page
from staticcms.core.page import read_page

logger = logging.getLogger(__name__)

HTML_PATTERN = re.compile(r"\.html?$", re.IGNORECASE)


class Repository(BaseModel):
    """Result of reading a source tree."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    pages: dict[UUID, Page] = Field(default_factory=dict)
    duplicates: dict[UUID, Page] = Field(default_factory=dict)
    copy_list: list[Path] = Field(default_factory=list)


class RepositoryBuilder:
    """Reads a source tree into a Repository.

    HTML files in the root and up to ``page_depth`` levels of
    subdirectories are page sources. Directories are traversed down to
    ``max_depth`` levels; deeper files are assets.
    """

    def __init__(self, adapter: HtmlAdapter, page_depth: int = 2, max_depth: int = 3):
        self.adapter = adapter
        self.page_depth = page_depth
        self.max_depth = max_depth
        self._reset(Path("."))

    def _reset(self, root: Path) -> None:
        self._root = root
        self._pages: dict[UUID, Page] = {}
        self._duplicates: dict[UUID, Page] = {}
        self._copy_list: list[Path] = []

    def build(self, root: Path) -> Repository:
        if not root.is_dir():
            raise SiteError(f"Source directory does not exist: {root}")
        self._reset(root)
        try:
            self._collect(root, 0)
        except OSError as e:
            raise SiteError(f"Cannot read source directory {root}: {e}") from e
        return Repository(
            pages=self._pages,
            duplicates=self._duplicates,
            copy_list=self._copy_list,
        )

    def _collect(self, directory: Path, depth: int) -> None:
        subdirectories = []
        index_page: Page | None = None

        for path in sorted(directory.iterdir(), key=lambda p: p.name):
            if path.is_dir():
                subdirectories.append(path)
                continue
            if depth > self.page_depth or not HTML_PATTERN.search(path.name):
                self._copy_list.append(path)
                continue

            page = self._read(path)
            if page is None:
                continue
            if page.index:
                if index_page is None:
                    index_page = page
                else:
                    logger.warning(
                        "%s claims index of %s already held by %s", page, directory, index_page
                    )
                    page.reset_index()
            self.add(page)

        for subdirectory in subdirectories:
            if depth + 1 > self.max_depth:
                logger.info(
                    "Copying %s as assets: deeper than %d levels", subdirectory, self.max_depth
                )
                self._copy_list.extend(
                    sorted(p for p in subdirectory.rglob("*") if p.is_file())
                )
                continue
            self._collect(subdirectory, depth + 1)

    def _read(self, path: Path) -> Page | None:
        try:
            return read_page(path, self._root, self.adapter)
        except (PageError, ValidationError) as e:
            logger.error("Not a valid source file %s: %s", path, e)
            logger.debug("Rejected %s", path, exc_info=True)
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Cannot read source file %s: %s", path, e)
        return None

    def add(self, page: Page) -> None:
        """Place a freshly read page into the primary or duplicate collection."""
        existing = self._pages.get(page.id)
        if existing is None:
            self._pages[page.id] = page
        elif page.index and not existing.index:
            logger.warning("%s takes over id %s as index; %s becomes a duplicate", page, page.id, existing)
            existing.mark_duplicate()
            self._replace_duplicate(existing)
            self._pages[page.id] = page
        elif page.title.lower() == existing.title.lower():
            page.reset_index()
            logger.warning("Duplicate id and title %s: %s duplicates %s", page.id, page, existing)
        else:
            page.reset_index()
            page.mark_duplicate()
            self._replace_duplicate(page)
            logger.error("Duplicate id %s: %s duplicates %s", page.id, page, existing)

    def _replace_duplicate(self, page: Page) -> None:
        previous = self._duplicates.get(page.id)
        if previous is not None:
            logger.warning("%s replaces earlier duplicate %s", page, previous)
        self._duplicates[page.id] = page
