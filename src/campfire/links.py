"""Resolve relative link and image targets against the set of known posts."""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Iterable

from campfire.errors import UnresolvedLink
from campfire.index import PostSet
from campfire.post import Asset, Post

logger = logging.getLogger(__name__)

SCHEME_SEPARATOR = "://"
STATIC_PREFIX = "static"


def is_relative(destination: str) -> bool:
    """A destination is relative unless it contains ``://``."""
    return SCHEME_SEPARATOR not in destination


def decode(destination: str) -> str:
    """Undo the ``%20`` encoding editors use for spaces in link targets.

    Only ``%20`` is decoded; this is not general percent-decoding.
    """
    return destination.replace("%20", " ")


class LinkResolver:
    """Maps relative link targets to post URLs.

    *posts* must be complete before the first :meth:`resolve` call.  A plain
    iterable is frozen into a :class:`~campfire.index.PostSet` first.
    """

    def __init__(self, posts: Iterable[Post], base_url: str = "") -> None:
        self.base_url = base_url.rstrip("/")
        self.posts = posts if isinstance(posts, PostSet) else PostSet(posts)

    def url_for(self, post: Post) -> str:
        return f"{self.base_url}/{post.relative_url}"

    def find(self, destination: str) -> Post | None:
        """Return the post whose source path equals the decoded *destination*."""
        return self.posts.get(decode(destination))

    def resolve(self, destination: str) -> str | None:
        """Return the rewritten URL, the unchanged destination when absolute,
        or ``None`` when no post matches."""
        if not is_relative(destination):
            return destination
        post = self.find(destination)
        if post is None:
            return None
        return self.url_for(post)

    def rewrite(self, destination: str, source: str = "") -> tuple[str, UnresolvedLink | None]:
        """Resolve *destination* for the renderer.

        Unresolved targets come back byte-for-byte unchanged together with an
        :class:`UnresolvedLink` diagnostic.
        """
        resolved = self.resolve(destination)
        if resolved is not None:
            return resolved, None
        logger.warning("Unresolved link %r in %s", destination, source or "<unknown>")
        return destination, UnresolvedLink(destination, source)

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    @staticmethod
    def asset_for(destination: str) -> Asset:
        """Describe the copy needed for a relative image *destination*."""
        source = decode(destination)
        return Asset(source=source, target=f"{STATIC_PREFIX}/{posixpath.basename(source)}")

    def asset_url(self, asset: Asset) -> str:
        return f"{self.base_url}/{asset.target}".replace(" ", "%20")
