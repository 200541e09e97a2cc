"""Markdown to HTML rendering for posts.

The body is parsed with :mod:`markdown_it` and the resulting token stream is
rewritten in a single pass before it is rendered:

- footnote references become numbered superscript anchors,
- headings are demoted by one level (``#`` renders as ``<h2>``),
- link targets go through the :class:`~campfire.links.LinkResolver`,
- relative images are rewritten to ``<base_url>/static/<name>`` and recorded
  as :class:`~campfire.post.Asset` s to copy.

Footnote definitions are rendered separately as an ordered list after a
horizontal rule, each item carrying the id its reference links to.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from html import escape

from markdown_it import MarkdownIt
from markdown_it.rules_core import StateCore
from markdown_it.rules_inline import StateInline
from markdown_it.token import Token

from campfire import footnotes
from campfire.errors import UnresolvedLink
from campfire.footnotes import Footnote
from campfire.links import LinkResolver, is_relative
from campfire.post import Asset, Post, RenderedPost

logger = logging.getLogger(__name__)

BACK_ARROW = "↩"

# Longest match first so "---" is not read as "--" plus "-"
_PUNCTUATION_RE = re.compile(r"---|--|\.\.\.")
_PUNCTUATION = {"---": "\u2014", "--": "\u2013", "...": "\u2026"}


# ---------------------------------------------------------------------------
# Parser construction
# ---------------------------------------------------------------------------


def _footnote_ref_rule(state: StateInline, silent: bool) -> bool:
    """Recognise ``[^label]`` whether or not a matching definition exists.

    Definitions are stripped from the prose before parsing, so the stock
    footnote plugin, which requires them, cannot be used here.
    """
    start = state.pos
    if not state.src.startswith("[^", start):
        return False
    end = state.src.find("]", start + 2, state.posMax)
    if end < 0:
        return False
    label = state.src[start + 2 : end]
    if not label or any(c.isspace() for c in label):
        return False
    if not silent:
        token = state.push("footnote_ref", "", 0)
        token.meta = {"label": label}
    state.pos = end + 1
    return True


def _smart_punctuation_rule(state: StateCore) -> None:
    """Dashes and ellipses only; ``(c)``, ``(tm)`` and ``+-`` stay as typed."""
    if not state.md.options.typographer:
        return
    for block in state.tokens:
        if block.type != "inline" or not block.children:
            continue
        autolink_depth = 0
        for token in block.children:
            if token.type == "link_open" and token.info == "auto":
                autolink_depth += 1
            elif token.type == "link_close" and token.info == "auto":
                autolink_depth -= 1
            elif token.type == "text" and not autolink_depth:
                token.content = _PUNCTUATION_RE.sub(lambda m: _PUNCTUATION[m.group()], token.content)


def keep_destination(url: str) -> str:
    """Leave link and image destinations exactly as written.

    markdown-it percent-encodes them by default, which would stop relative
    targets from matching source paths and asset files on disk.
    """
    return url


def make_parser(*, footnote_refs: bool) -> MarkdownIt:
    """CommonMark with tables, strikethrough and smart punctuation."""
    md = MarkdownIt("commonmark", {"typographer": True})
    md.enable(["table", "strikethrough", "smartquotes"])
    md.core.ruler.before("smartquotes", "smart_punctuation", _smart_punctuation_rule)
    md.normalizeLink = keep_destination
    if footnote_refs:
        md.inline.ruler.before("link", "footnote_ref", _footnote_ref_rule)
    return md


# ---------------------------------------------------------------------------
# Token rewriting
# ---------------------------------------------------------------------------


@dataclass
class RenderState:
    """Accumulator threaded through the token rewrite of one post."""

    source: str = ""
    footnote_no: int = 0
    assets: list[Asset] = field(default_factory=list)
    unresolved: list[UnresolvedLink] = field(default_factory=list)


def footnote_ref_html(label: str, number: int) -> str:
    label = escape(label, quote=True)
    return f'<sup class="fn"><a id="{label}-back" href="#{label}">[{number}]</a></sup>'


def footnote_item_markdown(footnote: Footnote) -> str:
    label = escape(footnote.label, quote=True)
    return f'1. {footnote.text} <a class="fn-back" href="#{label}-back">{BACK_ARROW}</a>'


class HtmlRenderer:
    """Renders post bodies to HTML against a fixed :class:`LinkResolver`."""

    def __init__(self, resolver: LinkResolver, *, demote_headings: bool = True) -> None:
        self.resolver = resolver
        self.demote_headings = demote_headings
        self._prose_md = make_parser(footnote_refs=True)
        self._footnote_md = make_parser(footnote_refs=False)

    def render(self, post: Post) -> RenderedPost:
        html, state = self.render_markdown(post.body, source=post.source_path)
        return RenderedPost(post=post, html=html, assets=state.assets, unresolved=state.unresolved)

    def render_markdown(self, body: str, *, source: str = "") -> tuple[str, RenderState]:
        """Render *body*, returning the HTML and the final :class:`RenderState`."""
        prose, notes = footnotes.collect(body)
        state = RenderState(source=source)

        tokens = self._prose_md.parse(prose)
        state = self._rewrite(tokens, state)
        html = self._prose_md.renderer.render(tokens, self._prose_md.options, {})

        if notes:
            footnote_html, state = self.render_footnotes(notes, state)
            html += footnote_html
        return html, state

    def render_footnotes(self, notes: Sequence[Footnote], state: RenderState) -> tuple[str, RenderState]:
        """Render *notes* as ``<hr>`` plus an ordered list with back-links."""
        document = "---\n" + "\n".join(footnote_item_markdown(n) for n in notes)
        tokens = self._footnote_md.parse(document)
        labels: Iterator[Footnote] = iter(notes)
        for token in tokens:
            # Top-level items only; a footnote can contain a nested list
            if token.type == "list_item_open" and token.level == 1:
                note = next(labels, None)
                if note is not None:
                    token.attrSet("id", note.label)
        state = self._rewrite(tokens, state)
        return self._footnote_md.renderer.render(tokens, self._footnote_md.options, {}), state

    # ------------------------------------------------------------------
    # Rewrite pass
    # ------------------------------------------------------------------

    def _rewrite(self, tokens: Sequence[Token], state: RenderState) -> RenderState:
        for token in tokens:
            state = self._rewrite_token(token, state)
            if token.children:
                state = self._rewrite(token.children, state)
        return state

    def _rewrite_token(self, token: Token, state: RenderState) -> RenderState:
        if token.type == "footnote_ref":
            state.footnote_no += 1
            token.type = "html_inline"
            token.content = footnote_ref_html(token.meta["label"], state.footnote_no)
        elif token.type in ("heading_open", "heading_close") and self.demote_headings:
            token.tag = f"h{int(token.tag[1:]) + 1}"
        elif token.type == "link_open":
            href = str(token.attrGet("href") or "")
            if is_relative(href):
                rewritten, problem = self.resolver.rewrite(href, state.source)
                token.attrSet("href", rewritten)
                if problem is not None:
                    state.unresolved.append(problem)
        elif token.type == "image":
            src = str(token.attrGet("src") or "")
            if src and is_relative(src):
                asset = self.resolver.asset_for(src)
                token.attrSet("src", self.resolver.asset_url(asset))
                state.assets.append(asset)
                logger.debug("  Asset %s -> %s", asset.source, asset.target)
        return state
