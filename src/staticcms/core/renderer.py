"""Page rendering.

Navigation, title trail, latest-articles summaries and footer data are
computed here; the page shell comes from the Jinja2 template in
``staticcms/templates``.
"""

import copy
import logging
import math
import re
import time
from pathlib import Path

from bs4 import Tag
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from staticcms.config import Settings
from staticcms.core import dom
from staticcms.core.dom import AllOf, AttrEquals, ByTag, HtmlAdapter
from staticcms.core.hierarchy import SiteGraph
from staticcms.core.models import NBSP, Page

logger = logging.getLogger(__name__)

templates_path = Path(__file__).parent.parent / "templates"

SUMMARY = AllOf(ByTag("p"), AttrEquals("id", "article-summary", case_sensitive=False))
ODOT = "\u2299"
NDASH = "\u2013"
DATE_FORMAT = "%Y-%m-%dT%H:%MGMT"


def create_environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(templates_path)),
        autoescape=select_autoescape(["html"]),
    )


def create_classes(base: str, sub: str, first: bool, last: bool, current: bool) -> str:
    """Build the CSS class list for a navigation link or separator."""
    classes = [base, sub, f"{base}-{sub}"]
    positions = []
    if first:
        positions.append("first")
    if last:
        positions.append("last")
    if not first and not last:
        positions.append("inner")
    if current:
        positions.append("self")
    for position in positions:
        classes += [f"{base}-{position}", f"{sub}-{position}", f"{base}-{sub}-{position}"]
    return " ".join(classes)


def recency_key(page: Page, newest_created: float, newest_modified: float) -> tuple[float, str]:
    """Sort key favouring recently created and, to a lesser degree, modified pages."""
    created = page.time_created.timestamp() * 1000
    modified = page.time_modified.timestamp() * 1000
    score = 2 * math.log(max(1.0, newest_created - created)) + math.log(
        max(1.0, newest_modified - modified)
    )
    return score, str(page.id)


def copyright_line(page: Page, holder: str) -> str:
    created = page.time_created.year
    modified = page.time_modified.year
    years = f"{modified:04d}" if created >= modified else f"{created:04d}{NDASH}{modified:04d}"
    holder = re.sub(r"\s", NBSP, holder)
    return f"\u00a9{NBSP}{years}{NBSP}{holder}."


class Renderer:
    """Turns resolved pages into complete HTML documents."""

    def __init__(
        self,
        graph: SiteGraph,
        adapter: HtmlAdapter,
        settings: Settings,
        stamp: int | None = None,
    ):
        self.graph = graph
        self.adapter = adapter
        self.settings = settings
        self.stamp = stamp if stamp is not None else int(time.time() * 1000)
        self.env = create_environment()
        self._recent: list[Page] | None = None
        self._summaries: dict[int, list | None] = {}

    def render(self, page: Page) -> str:
        self.fill_latest_articles(page)
        template = self.env.get_template("page.html")
        return template.render(**self.get_context(page))

    def get_context(self, page: Page) -> dict:
        """Create the template context for one page."""
        holder = self.settings.copyright
        return {
            "page": page,
            "stamp": self.stamp,
            "font_css": self.settings.font_css,
            "style_css": self.settings.style_css,
            "script_js": self.settings.script_js,
            "mathjax_url": self.settings.mathjax_url,
            "title_trail": self.graph.title_trail(page),
            "nav_before": self.nav_before(page),
            "permalink": self.permalink(page),
            "nav_after": self.nav_after(page),
            "content": Markup(self.adapter.serialize(page.content)),
            "references": Markup(self.adapter.serialize(page.references))
            if page.references is not None
            else "",
            "modified": page.time_modified.strftime(DATE_FORMAT),
            "copyright": copyright_line(page, holder) if holder else None,
        }

    # ------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------

    def nav_before(self, page: Page) -> list[list[dict]]:
        """Breadcrumb links, root first."""
        return [self.link_list(self.graph.ancestors(page, nearest_first=False), "parents")]

    def nav_after(self, page: Page) -> list[list[dict]]:
        """Links to the page itself, its children and its siblings."""
        siblings = [p for p in self.graph.siblings(page) if p is not page]
        return [
            self.link_list([page], "current", current=page),
            self.link_list(self.graph.children(page), "children"),
            self.link_list(siblings, "siblings"),
        ]

    def link_list(self, pages: list[Page], base: str, current: Page | None = None) -> list[dict]:
        items: list[dict] = []
        size = len(pages)
        for i, linked in enumerate(pages):
            first = i == 0
            last = i == size - 1
            is_self = current is not None and linked.sort_key == current.sort_key
            if first:
                items.append({"classes": create_classes(base, "separator", True, False, False)})
            items.append(
                {
                    "href": self.graph.dynamic_filename(linked),
                    "classes": create_classes(base, "element", first, last, is_self),
                    "text": linked.title,
                }
            )
            items.append({"classes": create_classes(base, "separator", False, last, False)})
        return items

    def permalink(self, page: Page) -> dict:
        if page.duplicate:
            return {"classes": "permalink-disabled", "text": ODOT}
        return {"href": f"{page.id}.html", "classes": "permalink-enabled", "text": ODOT}

    # ------------------------------------------------------------
    # Latest articles
    # ------------------------------------------------------------

    def recent_pages(self) -> list[Page]:
        """Primary pages ordered by recency, computed once per run."""
        if self._recent is None:
            pages = list(self.graph.pages.values())
            if not pages:
                self._recent = []
            else:
                newest_created = max(p.time_created.timestamp() for p in pages) * 1000
                newest_modified = max(p.time_modified.timestamp() for p in pages) * 1000
                self._recent = sorted(
                    pages, key=lambda p: recency_key(p, newest_created, newest_modified)
                )
        return self._recent

    def summary(self, page: Page) -> list | None:
        """Return the summary nodes of a page, with local anchors made absolute."""
        key = id(page)
        if key not in self._summaries:
            self._summaries[key] = self._extract_summary(page)
        return self._summaries[key]

    def _extract_summary(self, page: Page) -> list | None:
        paragraph = dom.find_first(page.content, SUMMARY)
        if paragraph is None:
            return None
        filename = self.graph.dynamic_filename(page)
        nodes = []
        for child in paragraph.children:
            clone = copy.copy(child)
            if isinstance(clone, Tag):
                for anchor in dom.find_all(clone, ByTag("a")):
                    href = dom.attr_value(anchor, "href")
                    if href and href.startswith("#"):
                        anchor["href"] = filename + href
            nodes.append(clone)
        return nodes

    def fill_latest_articles(self, page: Page) -> None:
        """Replace the latest-articles section with summaries of descendants."""
        section = page.latest_articles
        if section is None or section.name == "div":
            return
        selected = []
        for candidate in self.recent_pages():
            if len(selected) >= self.settings.latest_articles_limit:
                break
            if self.graph.is_descendant(candidate, page) and self.summary(candidate):
                selected.append(candidate)
        if not selected:
            return

        section.name = "div"
        section["class"] = "latest-articles"
        for position, article in enumerate(selected):
            self._add_article(section, article, position == 0)
        logger.debug("Listed %d latest articles on %s", len(selected), page)

    def _add_article(self, section: Tag, page: Page, first: bool) -> None:
        position = "first" if first else "subsequent"
        item = self.adapter.append(
            section, "div", {"class": f"latest-articles-item latest-articles-item-{position}"}
        )

        category = self.adapter.append(item, "div", {"class": "latest-article-category"})
        parent = self.graph.parent(page)
        category_title = self.graph.parent_title(page, show_topmost=False)
        if parent is not None:
            self.adapter.append(
                category,
                "a",
                {"href": self.graph.dynamic_filename(parent), "class": "latest-article-category"},
                category_title,
            )
        else:
            dom.set_text(category, category_title)

        date = self.adapter.append(item, "div", {"class": "latest-article-date"})
        self.adapter.append(
            date,
            "span",
            {"class": "milliseconds-age"},
            str(int(page.time_modified.timestamp() * 1000)),
        )

        title = self.adapter.append(item, "div", {"class": "latest-article-title"})
        self.adapter.append(
            title,
            "a",
            {"class": "latest-article-link", "href": self.graph.dynamic_filename(page)},
            page.summary_title,
        )

        summary = self.adapter.append(item, "div", {"class": "latest-article-summary"})
        for node in self.summary(page):
            summary.append(copy.copy(node))
