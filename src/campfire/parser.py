"""YAML-frontmatter splitter and decoder."""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml

from campfire.errors import InvalidFrontmatter, MalformedDocument
from campfire.post import Frontmatter, Post, slugify_path, slugify_segment

logger = logging.getLogger(__name__)

# Whole document: optional whitespace, "---" line, block, "---" line, body.
# The closing delimiter must start a line; LF and CRLF are both accepted.
_FRONTMATTER_RE = re.compile(
    r"\A\s*---[ \t]*\r?\n(.*?)^---[ \t]*\r?(?:\n|\Z)(.*)\Z",
    re.DOTALL | re.MULTILINE,
)

_KNOWN_KEYS = {"title", "date", "tags", "author"}


class _FrontmatterLoader(yaml.SafeLoader):
    """``SafeLoader`` that leaves timestamps as plain strings.

    Dates are parsed by :func:`decode_date` instead, so an impossible date
    such as ``2021-13-45`` decodes to ``None`` rather than failing the load.
    """


_FrontmatterLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def split_frontmatter(content: str, path: Path | str | None = None) -> tuple[str, str]:
    """Split *content* into ``(frontmatter_block, body)``.

    Raises :class:`MalformedDocument` when the document does not open with a
    ``---`` delimited block.  A missing closing delimiter is malformed too;
    such a file is skipped, not treated as bodyless.
    """
    match = _FRONTMATTER_RE.match(content)
    if not match:
        raise MalformedDocument(path)
    return match.group(1), match.group(2)


def decode_tags(value: Any) -> list[str]:
    """Normalise a ``tags`` value given either as ``"a, b"`` or as a YAML list.

    Empty segments are dropped, so ``"a,, b"`` gives ``["a", "b"]`` rather
    than keeping a blank tag between them.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [t.strip() for t in value.split(",") if t.strip()]
    if isinstance(value, (list, tuple)):
        return [str(t).strip() for t in value if t is not None and str(t).strip()]
    return [str(value)]


def decode_date(value: Any) -> date | None:
    """Parse an ISO calendar date; anything unparseable yields ``None``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def decode_frontmatter(block: str, path: Path | str | None = None) -> Frontmatter:
    """Decode a raw frontmatter block into a :class:`Frontmatter`.

    Raises :class:`InvalidFrontmatter` when the block is not valid YAML or
    its top level is not a mapping.
    """
    try:
        meta = yaml.load(block, Loader=_FrontmatterLoader)  # noqa: S506 - SafeLoader subclass
    except yaml.YAMLError as exc:
        raise InvalidFrontmatter(str(exc), path) from exc
    if meta is None:
        meta = {}
    if not isinstance(meta, dict):
        raise InvalidFrontmatter(f"expected a mapping, got {type(meta).__name__}", path)

    return Frontmatter(
        title=_optional_str(meta.get("title")),
        date=decode_date(meta.get("date")),
        tags=decode_tags(meta.get("tags")),
        author=_optional_str(meta.get("author")),
        extra={str(k): v for k, v in meta.items() if k not in _KNOWN_KEYS},
    )


def read_post(path: Path, content: str, site_root: Path) -> Post:
    """Turn one ``(path, text)`` pair from the walker into a :class:`Post`."""
    block, body = split_frontmatter(content, path)
    frontmatter = decode_frontmatter(block, path)

    relative = Path(path).relative_to(site_root)
    stem = relative.name.removesuffix(".md")
    title = frontmatter.title or stem

    # An empty title segment would make the post overwrite the site index
    slug_title = title
    if not slugify_segment(title):
        if not slugify_segment(stem):
            raise InvalidFrontmatter(f"title {title!r} and the file name both give an empty slug", path)
        logger.warning("Title %r of %s gives an empty slug; using the file name", title, path)
        slug_title = stem

    return Post(
        path=Path(path),
        source_path=relative.as_posix(),
        frontmatter=frontmatter,
        slug=slugify_path(relative.parent.as_posix(), slug_title),
        title=title,
        body=body,
    )
