"""Data models for StaticCMS."""

from datetime import datetime
from pathlib import Path
from uuid import UUID

from bs4 import Tag
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

NBSP = "\u00a0"


def normalize_title(title: str) -> str:
    """Collapse whitespace runs and join words with non-breaking spaces."""
    return NBSP.join(title.split())


class PageMetadata(BaseModel):
    """Metadata extracted from the ``<head>`` markers of a source document."""

    id: UUID
    title: str
    parent_id: UUID | None = None
    math: bool = False
    index: bool = False

    @field_validator("title")
    @classmethod
    def _normalize_title(cls, value: str) -> str:
        title = normalize_title(value)
        if not title:
            raise ValueError("Title must not be empty")
        return title

    @model_validator(mode="after")
    def _check_not_own_parent(self) -> "PageMetadata":
        if self.parent_id is not None and self.parent_id == self.id:
            raise ValueError("Page cannot be its own parent")
        return self


class Page(BaseModel):
    """One authored source document after extraction.

    Content elements are BeautifulSoup tags owned by this page; the
    reference resolver rewrites them in place.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    metadata: PageMetadata
    source_path: Path
    root_path: Path
    content: Tag
    notes: dict[str, Tag] = Field(default_factory=dict)
    latest_articles: Tag | None = None
    summary_title: str
    content_ids: dict[UUID, str] = Field(default_factory=dict)
    page_refs: dict[UUID, list[Tag]] = Field(default_factory=dict)
    references: Tag | None = None
    time_modified: datetime
    time_created: datetime
    duplicate: bool = False

    _dynamic_filename: str | None = PrivateAttr(default=None)

    @property
    def id(self) -> UUID:
        return self.metadata.id

    @property
    def title(self) -> str:
        return self.metadata.title

    @property
    def parent_id(self) -> UUID | None:
        return self.metadata.parent_id

    @property
    def math(self) -> bool:
        return self.metadata.math

    @property
    def index(self) -> bool:
        """Whether the page still carries its index flag."""
        return self.metadata.index

    def reset_index(self) -> None:
        self.metadata.index = False

    def mark_duplicate(self) -> None:
        self.duplicate = True

    @property
    def sort_key(self) -> tuple[str, str]:
        """Ordering for child and sibling sets: title, then identity."""
        return self.title.lower(), str(self.id)

    def __str__(self) -> str:
        return f'Page "{self.title}" [{self.id}] ({self.source_path})'
