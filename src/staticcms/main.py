"""StaticCMS command-line entry point and build pipeline."""

import logging
import sys

from staticcms.config import Settings, get_settings
from staticcms.core.dom import HtmlAdapter
from staticcms.core.errors import SiteError
from staticcms.core.hierarchy import SiteGraph
from staticcms.core.references import replace_page_references
from staticcms.core.renderer import Renderer
from staticcms.core.repository import RepositoryBuilder
from staticcms.core.writer import SiteWriter, WriteReport

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    level = logging.DEBUG if settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_site(settings: Settings) -> WriteReport:
    """Read the source tree, resolve it and write the site.

    Raises:
        SiteError: The source root is unreadable or the target root is
            not writable.
    """
    if not settings.source_root.is_dir():
        raise SiteError(f"Source directory does not exist: {settings.source_root}")
    adapter = HtmlAdapter()
    writer = SiteWriter(settings.target_root, strict=settings.strict_filenames)
    writer.prepare_target()

    builder = RepositoryBuilder(
        adapter, page_depth=settings.page_depth, max_depth=settings.max_depth
    )
    repository = builder.build(settings.source_root)
    logger.info(
        "Read %d pages, %d duplicates, %d assets from %s",
        len(repository.pages),
        len(repository.duplicates),
        len(repository.copy_list),
        settings.source_root,
    )

    graph = SiteGraph(repository.pages, repository.duplicates)
    graph.attach()
    graph.compute_root_siblings()
    graph.resolve_index()
    for page in graph.all_pages():
        replace_page_references(page, graph)

    renderer = Renderer(graph, adapter, settings)
    writer.write_pages(graph, renderer)
    writer.copy_assets(settings.source_root, repository.copy_list)

    report = writer.report
    logger.info(
        "Wrote %d pages (%d skipped, %d failed), copied %d assets",
        len(report.written),
        len(report.skipped),
        len(report.failed),
        len(report.copied),
    )
    return report


def main(argv: list[str] | None = None) -> int:
    settings = get_settings(sys.argv[1:] if argv is None else argv)
    configure_logging(settings)
    try:
        build_site(settings)
    except SiteError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
