"""PostSet: the complete, immutable collection of posts in one build."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from datetime import date
from pathlib import Path

from campfire.errors import DuplicateSlug, InvalidFrontmatter, MalformedDocument
from campfire.parser import read_post
from campfire.post import Post

logger = logging.getLogger(__name__)


class PostSet:
    """Ordered collection of every post in a build.

    Built once by :func:`collect_posts` before any rendering starts; link
    resolution relies on it being complete and never changing afterwards.
    """

    def __init__(self, posts: Iterable[Post]) -> None:
        self._posts: tuple[Post, ...] = tuple(posts)
        self._by_source: dict[str, Post] = {p.source_path: p for p in self._posts}
        self.duplicates: list[DuplicateSlug] = self._find_duplicates()

    def __iter__(self) -> Iterator[Post]:
        return iter(self._posts)

    def __len__(self) -> int:
        return len(self._posts)

    def _find_duplicates(self) -> list[DuplicateSlug]:
        seen: dict[str, Post] = {}
        found: list[DuplicateSlug] = []
        for post in self._posts:
            first = seen.setdefault(post.slug, post)
            if first is not post:
                found.append(DuplicateSlug(post.slug, first.source_path, post.source_path))
        return found

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------

    def get(self, source_path: str) -> Post | None:
        return self._by_source.get(source_path)

    def by_date(self) -> list[Post]:
        """Posts newest first; undated posts keep their order at the end."""
        return sorted(self._posts, key=lambda p: p.date or date.min, reverse=True)


def collect_posts(
    documents: Iterable[tuple[Path, str]],
    site_root: Path,
    *,
    require_tag: str | None = None,
    strict: bool = False,
) -> PostSet:
    """Build the :class:`PostSet` from ``(path, text)`` pairs.

    - documents without a frontmatter block are skipped with a warning;
    - documents lacking *require_tag* (when given) are not published;
    - invalid frontmatter and duplicate slugs raise when *strict*, otherwise
      they are logged and the build carries on.
    """
    posts: list[Post] = []
    for path, text in documents:
        try:
            post = read_post(path, text, site_root)
        except MalformedDocument as exc:
            logger.warning("Skipping %s: %s", path, exc)
            continue
        except InvalidFrontmatter as exc:
            if strict:
                raise
            logger.error("Dropping %s: %s", path, exc)
            continue

        if require_tag is not None and require_tag not in post.frontmatter.tags:
            logger.debug("Skipping %s: not tagged %r", path, require_tag)
            continue
        posts.append(post)

    post_set = PostSet(posts)
    for problem in post_set.duplicates:
        if strict:
            raise problem
        logger.warning("%s; %s overwrites %s", problem, problem.second, problem.first)
    return post_set
