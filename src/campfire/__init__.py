"""campfire: static site generator for markdown posts with YAML frontmatter."""

from campfire.build import BuildResult, SiteBuilder, build
from campfire.config import SiteConfig, load_config
from campfire.index import PostSet, collect_posts
from campfire.links import LinkResolver
from campfire.parser import decode_frontmatter, read_post, split_frontmatter
from campfire.post import Asset, Frontmatter, Post, RenderedPost
from campfire.render import HtmlRenderer

__all__ = [
    "Asset",
    "BuildResult",
    "Frontmatter",
    "HtmlRenderer",
    "LinkResolver",
    "Post",
    "PostSet",
    "RenderedPost",
    "SiteBuilder",
    "SiteConfig",
    "build",
    "collect_posts",
    "decode_frontmatter",
    "load_config",
    "read_post",
    "split_frontmatter",
]
