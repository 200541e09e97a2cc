"""Error taxonomy for the campfire build.

Every error raised by the build derives from :class:`CampfireError` so the
command line can report it uniformly.  Some of these are never raised in
lenient mode and only show up as log records (see ``SiteConfig.strict``).
"""

from __future__ import annotations

from pathlib import Path


class CampfireError(Exception):
    """Base class for all campfire errors."""


class ConfigError(CampfireError):
    """``campfire.yaml`` or a template is missing or invalid."""


class MalformedDocument(CampfireError):
    """The file does not start with a ``---`` delimited frontmatter block."""

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = path
        where = f" in {path}" if path is not None else ""
        super().__init__(f"No frontmatter block found{where}")


class InvalidFrontmatter(CampfireError):
    """The frontmatter block is not a valid YAML mapping."""

    def __init__(self, reason: str, path: Path | str | None = None) -> None:
        self.reason = reason
        self.path = path
        where = f" in {path}" if path is not None else ""
        super().__init__(f"Invalid frontmatter{where}: {reason}")


class UnresolvedLink(CampfireError):
    """A relative link or image target matches no known post."""

    def __init__(self, destination: str, source: str = "") -> None:
        self.destination = destination
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(f"Unresolved link {destination!r}{where}")


class DuplicateSlug(CampfireError):
    """Two posts compute the same slug and would write the same output."""

    def __init__(self, slug: str, first: str, second: str) -> None:
        self.slug = slug
        self.first = first
        self.second = second
        super().__init__(f"Slug {slug!r} is used by both {first} and {second}")


class AssetCopyFailure(CampfireError):
    """A referenced asset could not be copied into the output tree."""

    def __init__(self, source: Path | str, target: Path | str, reason: str = "") -> None:
        self.source = source
        self.target = target
        detail = f": {reason}" if reason else ""
        super().__init__(f"Could not copy asset {source} to {target}{detail}")
