"""Output writing: rendered pages, permalinks, index alias and assets."""

import logging
import os
import shutil
from pathlib import Path
from uuid import UUID

from pydantic import BaseModel, Field

from staticcms.core.errors import FilenameCollisionError, SiteError
from staticcms.core.hierarchy import SiteGraph
from staticcms.core.models import Page
from staticcms.core.renderer import Renderer

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.html"


class WriteReport(BaseModel):
    """What a run wrote, skipped and failed to write."""

    written: list[Path] = Field(default_factory=list)
    permalinks: list[Path] = Field(default_factory=list)
    index: Path | None = None
    skipped: list[UUID] = Field(default_factory=list)
    failed: list[Path] = Field(default_factory=list)
    copied: list[Path] = Field(default_factory=list)


class SiteWriter:
    """Writes a resolved site below a target directory.

    Dynamic filenames are claimed first come, first served: primary pages
    in ingestion order, then duplicates.
    """

    def __init__(self, target_root: Path, strict: bool = False):
        self.target_root = target_root
        self.strict = strict
        self.report = WriteReport()
        self._claimed: dict[Path, Page] = {}

    def prepare_target(self) -> None:
        """Make sure the target root exists and is writable."""
        target = self.target_root
        if target.exists():
            if not target.is_dir() or not os.access(target, os.W_OK):
                raise SiteError(f"Target must be a writable directory: {target}")
            return
        try:
            target.mkdir(mode=0o755, parents=True)
        except OSError as e:
            raise SiteError(f"Cannot create target directory {target}: {e}") from e

    def output_path(self, filename: str) -> Path:
        return self.target_root / filename.removeprefix("./")

    def write_pages(self, graph: SiteGraph, renderer: Renderer) -> WriteReport:
        for page in graph.all_pages():
            self.write_page(page, graph, renderer)
        return self.report

    def write_page(self, page: Page, graph: SiteGraph, renderer: Renderer) -> bool:
        """Write one page under its dynamic filename plus its aliases.

        Returns False when the page was skipped or could not be written.
        """
        path = self.output_path(graph.dynamic_filename(page))
        first = self._claimed.get(path)
        if first is not None:
            if self.strict:
                raise FilenameCollisionError(path.name, str(first), str(page))
            logger.error("NOT writing %s: %s already written by %s", page, path.name, first)
            self.report.skipped.append(page.id)
            return False

        try:
            path.write_text(renderer.render(page), encoding="utf-8")
        except OSError as e:
            logger.error("Cannot write %s to %s: %s", page, path, e)
            self.report.failed.append(path)
            return False
        self._claimed[path] = page
        self.report.written.append(path)
        logger.info("Wrote %s", page)

        if page.duplicate:
            return True
        permalink = self.target_root / f"{page.id}.html"
        if self._copy(path, permalink):
            self.report.permalinks.append(permalink)
        if graph.is_index(page):
            index = self.target_root / INDEX_FILENAME
            if self._copy(path, index):
                self.report.index = index
        return True

    def copy_assets(self, source_root: Path, files: list[Path]) -> WriteReport:
        """Mirror non-document files below the target root."""
        for file in files:
            destination = self.target_root / file.relative_to(source_root)
            try:
                destination.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error("Cannot create directory %s: %s", destination.parent, e)
                self.report.failed.append(destination)
                continue
            if self._copy(file, destination):
                self.report.copied.append(destination)
        return self.report

    def _copy(self, source: Path, destination: Path) -> bool:
        try:
            shutil.copy2(source, destination)
        except OSError as e:
            logger.error("Cannot copy %s to %s: %s", source, destination, e)
            self.report.failed.append(destination)
            return False
        return True
