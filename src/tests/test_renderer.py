"""Tests for page rendering, navigation and latest-articles lists."""

from datetime import datetime, timezone

import pytest
from bs4 import BeautifulSoup

from staticcms.core.hierarchy import SiteGraph
from staticcms.core.references import replace_page_references
from staticcms.core.renderer import (
    ODOT,
    Renderer,
    copyright_line,
    create_classes,
    recency_key,
)

HOME_ID = "11111111-1111-1111-1111-111111111111"
ABOUT_ID = "22222222-2222-2222-2222-222222222222"
NEWS_ID = "33333333-3333-3333-3333-333333333333"
OLD_ID = "44444444-4444-4444-4444-444444444444"

NBSP = "\u00a0"
MDASH = "\u2014"

SUMMARY_BODY = (
    '<h1 id="article-summary-title">{title}</h1>'
    '<p id="article-summary">Read <a href="#details">more</a> here.</p>'
    '<h2 id="details">Details</h2>'
)


def resolve(*pages, duplicates=()):
    graph = SiteGraph({p.id: p for p in pages}, {p.id: p for p in duplicates})
    graph.attach()
    graph.compute_root_siblings()
    graph.resolve_index()
    for page in graph.all_pages():
        replace_page_references(page, graph)
    return graph


def parse(text):
    return BeautifulSoup(text, "lxml")


@pytest.fixture
def site(make_page):
    home = make_page(HOME_ID, "Home", index=True)
    about = make_page(ABOUT_ID, "About", parent=HOME_ID, math=True)
    news = make_page(NEWS_ID, "News", parent=HOME_ID)
    return home, about, news


# ============================================================
# Helpers
# ============================================================


class TestCreateClasses:
    def test_single_element(self):
        assert create_classes("parents", "element", True, True, False).split() == [
            "parents",
            "element",
            "parents-element",
            "parents-first",
            "element-first",
            "parents-element-first",
            "parents-last",
            "element-last",
            "parents-element-last",
        ]

    def test_inner_self(self):
        classes = create_classes("current", "element", False, False, True).split()
        assert "current-element-inner" in classes
        assert "current-element-self" in classes
        assert "current-first" not in classes


class TestRecencyKey:
    def test_newest_page_scores_zero(self, make_page):
        page = make_page(HOME_ID, "Home")
        created = page.time_created.timestamp() * 1000
        modified = page.time_modified.timestamp() * 1000
        assert recency_key(page, created, modified) == (0.0, HOME_ID)

    def test_older_page_sorts_later(self, make_page):
        new = make_page(HOME_ID, "New")
        old = make_page(OLD_ID, "Old")
        old.time_created = datetime(2001, 1, 1, tzinfo=timezone.utc)
        old.time_modified = datetime(2001, 1, 1, tzinfo=timezone.utc)
        newest_created = new.time_created.timestamp() * 1000
        newest_modified = new.time_modified.timestamp() * 1000
        assert recency_key(new, newest_created, newest_modified) < recency_key(
            old, newest_created, newest_modified
        )


class TestCopyrightLine:
    def test_single_year(self, make_page):
        page = make_page(HOME_ID, "Home")
        page.time_created = datetime(2024, 3, 1, tzinfo=timezone.utc)
        page.time_modified = datetime(2024, 5, 1, tzinfo=timezone.utc)
        assert copyright_line(page, "Jane Doe") == f"\u00a9{NBSP}2024{NBSP}Jane{NBSP}Doe."

    def test_year_range(self, make_page):
        page = make_page(HOME_ID, "Home")
        page.time_created = datetime(2019, 3, 1, tzinfo=timezone.utc)
        page.time_modified = datetime(2024, 5, 1, tzinfo=timezone.utc)
        assert copyright_line(page, "Jane") == f"\u00a9{NBSP}2019\u20132024{NBSP}Jane."


# ============================================================
# Page shell
# ============================================================


class TestRender:
    def test_title_and_trail(self, site, adapter, settings):
        home, about, news = site
        graph = resolve(home, about, news)
        doc = parse(Renderer(graph, adapter, settings).render(about))
        assert doc.title.get_text() == f"About{NBSP}{MDASH} Home"
        assert doc.find(id="article-title").get_text() == f"About{NBSP}{MDASH} Home"

    def test_stylesheet_stamp(self, site, adapter, settings):
        home, about, news = site
        graph = resolve(home, about, news)
        doc = parse(Renderer(graph, adapter, settings, stamp=42).render(home))
        hrefs = [link["href"] for link in doc.find_all("link")]
        assert f"{settings.style_css}?stamp=42" in hrefs
        assert settings.font_css in hrefs

    def test_mathjax_only_when_requested(self, site, adapter, settings):
        home, about, news = site
        graph = resolve(home, about, news)
        renderer = Renderer(graph, adapter, settings)
        math_sources = [s.get("src") for s in parse(renderer.render(about)).find_all("script")]
        plain_sources = [s.get("src") for s in parse(renderer.render(news)).find_all("script")]
        assert settings.mathjax_url in math_sources
        assert settings.mathjax_url not in plain_sources

    def test_content_rendered_unescaped(self, make_page, adapter, settings):
        page = make_page(HOME_ID, "Home", body="<p>Some <b>bold</b> text</p>")
        graph = resolve(page)
        doc = parse(Renderer(graph, adapter, settings).render(page))
        assert doc.find("article").find("b").get_text() == "bold"

    def test_footer(self, make_page, adapter, settings):
        page = make_page(HOME_ID, "Home", body='<a href="ref:http://x">x</a>')
        page.time_modified = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
        settings.copyright = "Jane Doe"
        graph = resolve(page)
        doc = parse(Renderer(graph, adapter, settings).render(page))
        footer = doc.find("footer")
        assert footer.find("span", class_="milliseconds-date").get_text() == "2024-05-01T12:30GMT"
        assert "Jane" in footer.find("span", class_="source-copyright").get_text()
        assert footer.find("table", id="reference-list") is not None

    def test_no_copyright_by_default(self, make_page, adapter, settings):
        page = make_page(HOME_ID, "Home")
        graph = resolve(page)
        doc = parse(Renderer(graph, adapter, settings).render(page))
        assert doc.find("span", class_="source-copyright") is None


class TestNavigation:
    def test_breadcrumbs_and_children(self, site, adapter, settings):
        home, about, news = site
        graph = resolve(home, about, news)
        doc = parse(Renderer(graph, adapter, settings).render(home))
        nav = doc.find("nav")
        children = [a.get_text() for a in nav.find_all("a", class_="children-element")]
        assert children == ["About", "News"]
        assert nav.find("a", class_="parents-element") is None

    def test_child_page_links(self, site, adapter, settings):
        home, about, news = site
        graph = resolve(home, about, news)
        nav = parse(Renderer(graph, adapter, settings).render(about)).find("nav")
        parent = nav.find("a", class_="parents-element")
        assert parent["href"] == "./home.html"
        current = nav.find("a", class_="current-element-self")
        assert current.get_text() == "About"
        siblings = [a.get_text() for a in nav.find_all("a", class_="siblings-element")]
        assert siblings == ["News"]

    def test_separators_surround_groups(self, site, adapter, settings):
        home, about, news = site
        graph = resolve(home, about, news)
        nav = parse(Renderer(graph, adapter, settings).render(home)).find("nav")
        assert nav.find("span", class_="children-separator-first") is not None
        assert nav.find("span", class_="children-separator-last") is not None

    def test_permalink_enabled(self, site, adapter, settings):
        home, about, news = site
        graph = resolve(home, about, news)
        nav = parse(Renderer(graph, adapter, settings).render(about)).find("nav")
        link = nav.find("a", class_="permalink-enabled")
        assert link["href"] == f"{ABOUT_ID}.html"
        assert link.get_text() == ODOT

    def test_permalink_disabled_for_duplicate(self, site, make_page, adapter, settings):
        home, about, news = site
        copy = make_page(ABOUT_ID, "About Again", parent=HOME_ID, name="copy.html")
        copy.mark_duplicate()
        graph = resolve(home, about, news, duplicates=[copy])
        nav = parse(Renderer(graph, adapter, settings).render(copy)).find("nav")
        assert nav.find("a", class_="permalink-enabled") is None
        assert nav.find("span", class_="permalink-disabled").get_text() == ODOT


# ============================================================
# Latest articles
# ============================================================


class TestLatestArticles:
    @pytest.fixture
    def blog(self, make_page):
        home = make_page(HOME_ID, "Home", body='<section id="latest-articles"></section>')
        first = make_page(
            ABOUT_ID, "First", parent=HOME_ID, body=SUMMARY_BODY.format(title="First post")
        )
        second = make_page(
            NEWS_ID, "Second", parent=HOME_ID, body=SUMMARY_BODY.format(title="Second post")
        )
        plain = make_page(OLD_ID, "Plain", parent=HOME_ID)
        return home, first, second, plain

    def test_summaries_listed(self, blog, adapter, settings):
        home, *rest = blog
        graph = resolve(home, *rest)
        doc = parse(Renderer(graph, adapter, settings).render(home))
        block = doc.find("div", class_="latest-articles")
        assert block is not None
        titles = sorted(a.get_text() for a in block.find_all("a", class_="latest-article-link"))
        assert titles == ["First post", "Second post"]
        assert len(block.find_all("div", class_="latest-articles-item-first")) == 1
        assert doc.find("section", id="latest-articles") is None

    def test_local_anchor_made_absolute(self, blog, adapter, settings):
        home, first, *rest = blog
        graph = resolve(home, first, *rest)
        doc = parse(Renderer(graph, adapter, settings).render(home))
        hrefs = [
            a["href"]
            for a in doc.find_all("div", class_="latest-article-summary")[0].find_all("a")
        ]
        assert hrefs[0].endswith("_-_home.html#details")

    def test_category_links_parent(self, blog, adapter, settings):
        home, *rest = blog
        graph = resolve(home, *rest)
        doc = parse(Renderer(graph, adapter, settings).render(home))
        category = doc.find("div", class_="latest-article-category").find("a")
        assert category["href"] == "./home.html"
        assert category.get_text() == "Home"

    def test_limit(self, blog, adapter, settings):
        home, *rest = blog
        settings.latest_articles_limit = 1
        graph = resolve(home, *rest)
        doc = parse(Renderer(graph, adapter, settings).render(home))
        assert len(doc.find_all("a", class_="latest-article-link")) == 1

    def test_source_summary_untouched(self, blog, adapter, settings):
        home, first, *rest = blog
        graph = resolve(home, first, *rest)
        Renderer(graph, adapter, settings).render(home)
        assert first.content.find("a")["href"] == "#details"

    def test_render_twice(self, blog, adapter, settings):
        home, *rest = blog
        graph = resolve(home, *rest)
        renderer = Renderer(graph, adapter, settings)
        renderer.render(home)
        doc = parse(renderer.render(home))
        assert len(doc.find_all("a", class_="latest-article-link")) == 2

    def test_no_descendant_summaries(self, make_page, adapter, settings):
        home = make_page(HOME_ID, "Home", body='<section id="latest-articles"></section>')
        graph = resolve(home)
        doc = parse(Renderer(graph, adapter, settings).render(home))
        assert doc.find("section", id="latest-articles") is not None
