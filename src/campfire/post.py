"""Core post dataclasses and slug assignment."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Any

from slugify import slugify

if TYPE_CHECKING:
    from campfire.errors import UnresolvedLink

# Apostrophes are dropped rather than turned into separators ("don't" -> "dont")
_SLUG_REPLACEMENTS = [["'", ""], ["’", ""]]


def slugify_segment(text: str) -> str:
    """Slugify a single path segment or title."""
    return slugify(text, replacements=_SLUG_REPLACEMENTS)


def slugify_path(relative_parent: str | PurePosixPath, title: str) -> str:
    """Build a post slug from its directory (relative to the site root) and title.

    Every directory segment is slugified on its own, the title is appended as
    the last segment::

        >>> slugify_path("blog", "My Post")
        'blog/my-post'
    """
    parts = [p for p in PurePosixPath(relative_parent).parts if p not in ("", ".")]
    segments = [slugify_segment(p) for p in parts]
    segments.append(slugify_segment(title))
    return "/".join(segments)


@dataclass
class Frontmatter:
    """Decoded YAML frontmatter of a post."""

    title: str | None = None
    date: date | None = None
    tags: list[str] = field(default_factory=list)
    author: str | None = None
    #: Any other keys, passed through to templates untouched
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Asset:
    """A file referenced by a post that must be copied into the output tree."""

    source: str  # relative to the site root
    target: str  # relative to the output root, always under ``static/``


@dataclass
class Post:
    """A single published markdown post."""

    path: Path
    #: Path relative to the site root, always ``/``-separated
    source_path: str
    frontmatter: Frontmatter
    slug: str
    title: str
    body: str

    @property
    def relative_url(self) -> str:
        return f"{self.slug}/"

    @property
    def date(self) -> date | None:
        return self.frontmatter.date


@dataclass
class RenderedPost:
    """Output of the HTML renderer for one post."""

    post: Post
    html: str
    assets: list[Asset] = field(default_factory=list)
    unresolved: list["UnresolvedLink"] = field(default_factory=list)

    def context(self, *, default_author: str = "", hidden_tag: str | None = None) -> dict[str, Any]:
        """Flat record handed to the ``post.html``, ``index.html`` and feed templates."""
        fm = self.post.frontmatter
        day = fm.date
        return {
            "title": self.post.title,
            "tags": [t for t in fm.tags if t != hidden_tag],
            "author": fm.author or default_author,
            "date": day.isoformat() if day else "",
            "year": day.year if day else None,
            "month": day.month if day else None,
            "day": day.day if day else None,
            "original_file_name": self.post.source_path,
            "relative_url": self.post.relative_url,
            "markdown": self.html,
            "extra": fm.extra,
        }
