"""Exceptions raised while building a site."""


class SiteError(Exception):
    """A condition that aborts the whole run."""


class PageError(ValueError):
    """A source document is structurally invalid and must be skipped."""


class FilenameCollisionError(SiteError):
    """Two pages generated the same output filename."""

    def __init__(self, filename: str, first: str, second: str):
        super().__init__(f"{second} collides with {first} on {filename}")
        self.filename = filename
        self.first = first
        self.second = second
