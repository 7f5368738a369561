"""Shared pytest fixtures for building small source trees."""

import pytest

from staticcms.config import Settings
from staticcms.core.dom import HtmlAdapter
from staticcms.core.page import read_page


def source_html(
    page_id: str,
    title: str,
    body: str = "<p>Text</p>",
    parent: str | None = None,
    math: bool = False,
    index: bool = False,
) -> str:
    """Return a source document carrying the head markers."""
    head = [f"<title>{title}</title>", f'<meta name="scms-uuid" value="{page_id}">']
    if parent is not None:
        head.append(f'<meta name="scms-parent-uuid" value="{parent}">')
    if math:
        head.append('<meta name="scms-uses-math" value="true">')
    if index:
        head.append('<meta name="scms-is-index" value="true">')
    return (
        "<!DOCTYPE html><html><head>"
        + "".join(head)
        + f"</head><body>{body}</body></html>"
    )


@pytest.fixture
def adapter():
    return HtmlAdapter()


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        source_root=tmp_path / "source",
        target_root=tmp_path / "public",
    )


@pytest.fixture
def html():
    """The source document factory."""
    return source_html


@pytest.fixture
def source_root(tmp_path):
    root = tmp_path / "source"
    root.mkdir()
    return root


@pytest.fixture
def write_source(source_root):
    """Write a source document below the source root and return its path."""

    def _write(name: str, page_id: str, title: str, **kwargs):
        path = source_root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source_html(page_id, title, **kwargs), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_page(write_source, source_root, adapter):
    """Write a source document and read it back as a Page."""

    def _make(page_id: str, title: str, name: str | None = None, **kwargs):
        path = write_source(name or f"{page_id}.html", page_id, title, **kwargs)
        return read_page(path, source_root, adapter)

    return _make
