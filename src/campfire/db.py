"""PostDB: queryable view over the metadata of every post in a build.

Uses DuckDB (in-memory) as a query engine over post metadata and returns
:mod:`polars` DataFrames.  The build uses it to give the index and feed
templates tag counts and a per-year archive.

Usage::

    with PostDB(post_set) as db:
        db.tag_counts()        # tag, post_count
        db.archive()           # {2024: [{slug, title, date}, ...], ...}
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import duckdb
import polars as pl

from campfire.post import Post


class PostDB:
    """In-memory DuckDB database over post metadata."""

    def __init__(self, posts: Iterable[Post]) -> None:
        self.conn: duckdb.DuckDBPyConnection = duckdb.connect(":memory:")
        self.refresh(posts)

    # ------------------------------------------------------------------
    # Build / refresh
    # ------------------------------------------------------------------

    def refresh(self, posts: Iterable[Post]) -> None:
        """(Re-)populate the database from *posts*."""
        self._create_schema()
        self._load_posts(list(posts))

    def _create_schema(self) -> None:
        self.conn.execute("""
            CREATE OR REPLACE TABLE posts (
                slug        VARCHAR PRIMARY KEY,
                title       VARCHAR,
                date        DATE,
                tags        VARCHAR[]
            )
        """)

    def _load_posts(self, posts: list[Post]) -> None:
        rows = [
            (
                post.slug,
                post.title,
                post.date,
                post.frontmatter.tags,
            )
            for post in posts
        ]
        if rows:
            # Duplicate slugs: the later post wins, as it does on disk
            self.conn.executemany("INSERT OR REPLACE INTO posts VALUES (?,?,?,?)", rows)

    # ------------------------------------------------------------------
    # Index data
    # ------------------------------------------------------------------

    def tag_counts(self, hidden: str | None = None) -> pl.DataFrame:
        """Return a tag -> post count table sorted by frequency, leaving out *hidden*."""
        return self.conn.execute(
            """
            SELECT tag, COUNT(*) AS post_count
            FROM (SELECT unnest(tags) AS tag FROM posts)
            WHERE tag IS DISTINCT FROM ?
            GROUP BY tag
            ORDER BY post_count DESC, tag
            """,
            [hidden],
        ).pl()

    def archive(self) -> dict[int, list[dict[str, Any]]]:
        """Group dated posts by year, newest year and newest post first."""
        df = self.conn.execute(
            """
            SELECT
                CAST(year(posts.date) AS INTEGER) AS year,
                slug, title,
                strftime(posts.date, '%Y-%m-%d') AS date
            FROM posts
            WHERE posts.date IS NOT NULL
            ORDER BY posts.date DESC, title
            """
        ).pl()

        years: dict[int, list[dict[str, Any]]] = {}
        for row in df.to_dicts():
            year = int(row.pop("year"))
            years.setdefault(year, []).append(row)
        return years

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "PostDB":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
