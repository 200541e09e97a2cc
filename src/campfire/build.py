"""Two-phase site build.

Phase one walks the site and collects every post into a
:class:`~campfire.index.PostSet`.  Only then does phase two render each post,
since link resolution needs the complete set.  Afterwards the index page and
the feed are rendered, ``.campfire/static`` is copied over and the optional
post-build command runs.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    PackageLoader,
    Template,
    TemplateNotFound,
    TemplateSyntaxError,
    select_autoescape,
)

from campfire.config import CAMPFIRE_DIR, TARGET_PLACEHOLDER, SiteConfig
from campfire.db import PostDB
from campfire.errors import AssetCopyFailure, ConfigError, UnresolvedLink
from campfire.index import PostSet, collect_posts
from campfire.links import STATIC_PREFIX, LinkResolver
from campfire.post import RenderedPost
from campfire.render import HtmlRenderer
from campfire.walker import copy_tree, find_markdown_files

logger = logging.getLogger(__name__)

POST_TEMPLATE = "post.html"
INDEX_TEMPLATE = "index.html"
FEED_TEMPLATE = "feed.xml"


@dataclass
class BuildResult:
    posts: list[RenderedPost] = field(default_factory=list)
    assets_copied: int = 0
    static_copied: int = 0

    @property
    def unresolved(self) -> list[UnresolvedLink]:
        return [link for post in self.posts for link in post.unresolved]


def make_environment(templates_dir: Path) -> Environment:
    """Site templates first, the bundled defaults as fallback."""
    logger.debug("Using templates from %s", templates_dir)
    return Environment(
        loader=ChoiceLoader([
            FileSystemLoader(str(templates_dir)),
            PackageLoader("campfire", "templates"),
        ]),
        autoescape=select_autoescape(["html", "xml"]),
    )


class SiteBuilder:
    """Builds the site rooted at *base_dir* into ``.campfire/<target>``."""

    def __init__(self, base_dir: Path, config: SiteConfig) -> None:
        self.base_dir = Path(base_dir).resolve()
        self.config = config
        self.campfire_dir = self.base_dir / CAMPFIRE_DIR
        self.output_dir = self.campfire_dir / config.paths.target
        self.env = make_environment(self.campfire_dir / config.paths.templates)
        self.templates = {
            name: self._load_template(name) for name in (POST_TEMPLATE, INDEX_TEMPLATE, FEED_TEMPLATE)
        }

    def _load_template(self, name: str) -> Template:
        try:
            return self.env.get_template(name)
        except TemplateNotFound as exc:
            raise ConfigError(f"Template {name} not found") from exc
        except TemplateSyntaxError as exc:
            raise ConfigError(f"Template {name}: {exc}") from exc

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(self) -> BuildResult:
        posts = collect_posts(
            find_markdown_files(self.base_dir),
            self.base_dir,
            require_tag=self.config.require_tag,
            strict=self.config.strict,
        )
        logger.info("Found %d posts", len(posts))
        self._prepare_output()

        renderer = HtmlRenderer(
            LinkResolver(posts, self.config.base_url),
            demote_headings=self.config.demote_headings,
        )
        result = BuildResult()
        # Discovery order, so on a duplicate slug the later file wins
        by_source: dict[str, RenderedPost] = {}
        for post in posts:
            rendered = renderer.render(post)
            self._write_post(rendered)
            result.assets_copied += self._copy_assets(rendered)
            by_source[post.source_path] = rendered
        result.posts = [by_source[post.source_path] for post in posts.by_date()]

        self._write_index_and_feed(result.posts, posts)
        result.static_copied = self._copy_static()
        self._run_post_build_command()
        return result

    def _prepare_output(self) -> None:
        if self.output_dir.exists():
            shutil.rmtree(self.output_dir)
        (self.output_dir / STATIC_PREFIX).mkdir(parents=True)

    def _base_context(self) -> dict[str, Any]:
        return {
            "base_url": self.config.base_url.rstrip("/"),
            "site_title": self.config.title,
            "site_author": self.config.author,
            "feed_path": self.config.feed_path,
        }

    def _post_context(self, rendered: RenderedPost) -> dict[str, Any]:
        return rendered.context(default_author=self.config.author, hidden_tag=self.config.require_tag)

    def _write_post(self, rendered: RenderedPost) -> None:
        post_dir = self.output_dir / rendered.post.slug
        logger.info("Generating %s", post_dir)
        html = self.templates[POST_TEMPLATE].render(post=self._post_context(rendered), **self._base_context())
        post_dir.mkdir(parents=True, exist_ok=True)
        (post_dir / "index.html").write_text(html, encoding="utf-8")

    def _copy_assets(self, rendered: RenderedPost) -> int:
        copied = 0
        for asset in rendered.assets:
            source = self.base_dir / asset.source
            target = self.output_dir / asset.target
            logger.debug("  Copying asset %s", target)
            try:
                shutil.copy2(source, target)
            except OSError as exc:
                problem = AssetCopyFailure(source, target, exc.strerror or str(exc))
                if self.config.strict:
                    raise problem from exc
                logger.warning("%s (referenced by %s)", problem, rendered.post.source_path)
                continue
            copied += 1
        return copied

    def _write_index_and_feed(self, rendered: list[RenderedPost], posts: PostSet) -> None:
        records = [self._post_context(r) for r in rendered]
        with PostDB(posts) as db:
            context = {
                **self._base_context(),
                "posts": records,
                "tags": db.tag_counts(self.config.require_tag).to_dicts(),
                "archive": db.archive(),
                "updated": next((r["date"] for r in records if r["date"]), ""),
            }

        index = self.templates[INDEX_TEMPLATE].render(**context)
        (self.output_dir / "index.html").write_text(index, encoding="utf-8")

        feed_file = self.output_dir / self.config.feed_path
        feed_file.parent.mkdir(parents=True, exist_ok=True)
        feed_file.write_text(self.templates[FEED_TEMPLATE].render(**context), encoding="utf-8")

    def _copy_static(self) -> int:
        source = self.campfire_dir / self.config.paths.static
        if not source.is_dir():
            logger.warning("Not copying static files, %s doesn't exist", source)
            return 0
        logger.info("Copying static files from %s", source)
        count = copy_tree(source, self.output_dir)
        logger.info("Copied %d files", count)
        return count

    def post_build_command(self) -> str:
        return self.config.post_build_command.replace(TARGET_PLACEHOLDER, str(self.output_dir))

    def _run_post_build_command(self) -> None:
        command = self.post_build_command()
        if not command.strip():
            return
        logger.info("Running post-build command: %s", command)
        completed = subprocess.run(command, shell=True, cwd=self.campfire_dir, check=False)  # noqa: S602
        if completed.returncode != 0:
            logger.error("Post-build command exited with status %d", completed.returncode)


def build(base_dir: Path, config: SiteConfig) -> BuildResult:
    """Build the site at *base_dir* with *config*."""
    return SiteBuilder(base_dir, config).build()
