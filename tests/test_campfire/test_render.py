"""Unit tests for campfire.render.HtmlRenderer."""

import logging
import textwrap
from pathlib import Path

import pytest

from campfire.links import LinkResolver
from campfire.parser import read_post
from campfire.post import Asset
from campfire.render import HtmlRenderer, RenderState, footnote_ref_html


@pytest.fixture()
def renderer(tmp_path: Path) -> HtmlRenderer:
    other = read_post(
        tmp_path / "blog" / "Other Post.md",
        "---\ntitle: Other Post\n---\nBody.\n",
        tmp_path,
    )
    return HtmlRenderer(LinkResolver([other], "https://example.com"))


def _html(renderer: HtmlRenderer, body: str) -> str:
    html, _ = renderer.render_markdown(body)
    return html


# ---------------------------------------------------------------------------
# Headings
# ---------------------------------------------------------------------------


class TestHeadings:
    def test_level_one_becomes_two(self, renderer: HtmlRenderer):
        html = _html(renderer, "# Title")
        assert "<h2>Title</h2>" in html
        assert "<h1>" not in html

    def test_level_six_becomes_seven(self, renderer: HtmlRenderer):
        assert "<h7>Deep</h7>" in _html(renderer, "###### Deep")

    def test_setext_heading_demoted(self, renderer: HtmlRenderer):
        assert "<h3>Sub</h3>" in _html(renderer, "Sub\n---")

    def test_demotion_can_be_disabled(self, renderer: HtmlRenderer):
        plain = HtmlRenderer(renderer.resolver, demote_headings=False)
        assert "<h1>Title</h1>" in _html(plain, "# Title")


# ---------------------------------------------------------------------------
# Footnotes
# ---------------------------------------------------------------------------


class TestFootnotes:
    def test_inline_footnote_reference_and_list(self, renderer: HtmlRenderer):
        html = _html(renderer, "See this.^[a note] here.")
        assert '<sup class="fn"><a id="fn-0-back" href="#fn-0">[1]</a></sup>' in html
        assert "<hr />" in html
        assert '<li id="fn-0">a note <a class="fn-back" href="#fn-0-back">↩</a></li>' in html

    def test_numbering_is_sequential_and_independent_of_labels(self, renderer: HtmlRenderer):
        body = textwrap.dedent("""\
            A[^zeta] and B[^alpha].

            [^zeta]: zed
            [^alpha]: ay
        """)
        html = _html(renderer, body)
        assert '<a id="zeta-back" href="#zeta">[1]</a>' in html
        assert '<a id="alpha-back" href="#alpha">[2]</a>' in html

    def test_list_in_registration_order(self, renderer: HtmlRenderer):
        html = _html(renderer, "A[^b] B[^a]\n\n[^b]: bee\n[^a]: ay")
        assert html.index('<li id="b">') < html.index('<li id="a">')

    def test_mixed_inline_and_reference_footnotes(self, renderer: HtmlRenderer):
        html, state = renderer.render_markdown("One[^x] two^[inline]\n\n[^x]: ex")
        assert '<a id="x-back" href="#x">[1]</a>' in html
        # "[^x]: ex" is a definition line but comes after the inline one
        assert '<a id="fn-0-back" href="#fn-0">[2]</a>' in html
        assert state.footnote_no == 2

    def test_reference_without_definition_is_still_numbered(self, renderer: HtmlRenderer):
        html = _html(renderer, "Dangling[^nowhere].")
        assert '<a id="nowhere-back" href="#nowhere">[1]</a>' in html

    def test_back_link_targets_match(self, renderer: HtmlRenderer):
        html = _html(renderer, "Ref[^n].\n\n[^n]: note")
        assert 'href="#n"' in html and '<li id="n">' in html
        assert 'id="n-back"' in html and 'href="#n-back"' in html

    def test_no_footnotes_no_list(self, renderer: HtmlRenderer):
        html = _html(renderer, "Just text.")
        assert "<hr" not in html
        assert "<ol>" not in html

    def test_links_in_footnotes_are_resolved(self, renderer: HtmlRenderer):
        html = _html(renderer, "Ref[^n].\n\n[^n]: see [other](blog/Other%20Post.md)")
        footnote_part = html[html.index("<hr") :]
        assert 'href="https://example.com/blog/other-post/"' in footnote_part

    def test_footnote_ref_html_escapes_label(self):
        assert footnote_ref_html('a"b', 3) == (
            '<sup class="fn"><a id="a&quot;b-back" href="#a&quot;b">[3]</a></sup>'
        )


# ---------------------------------------------------------------------------
# Links and images
# ---------------------------------------------------------------------------


class TestLinks:
    def test_relative_link_to_known_post(self, renderer: HtmlRenderer):
        html = _html(renderer, "[other](blog/Other%20Post.md)")
        assert '<a href="https://example.com/blog/other-post/">other</a>' in html

    def test_unresolved_link_left_unchanged(self, renderer: HtmlRenderer, caplog):
        with caplog.at_level(logging.WARNING):
            html, state = renderer.render_markdown("[gone](missing.md)", source="post.md")
        assert '<a href="missing.md">gone</a>' in html
        assert [u.destination for u in state.unresolved] == ["missing.md"]
        assert "missing.md" in caplog.text

    def test_absolute_link_untouched(self, renderer: HtmlRenderer):
        html, state = renderer.render_markdown("[py](https://python.org/)")
        assert 'href="https://python.org/"' in html
        assert state.unresolved == []

    def test_non_ascii_link_to_known_post(self, tmp_path: Path):
        about = read_post(tmp_path / "blog" / "Über uns.md", "---\ntitle: Über uns\n---\nHi.\n", tmp_path)
        resolver = LinkResolver([about], "https://example.com")
        html, state = HtmlRenderer(resolver).render_markdown("[a](blog/Über%20uns.md)")
        assert '<a href="https://example.com/blog/uber-uns/">a</a>' in html
        assert state.unresolved == []

    def test_non_ascii_unresolved_link_kept_as_written(self, renderer: HtmlRenderer):
        html, state = renderer.render_markdown("[a](notes/café.md)")
        assert '<a href="notes/café.md">a</a>' in html
        assert [u.destination for u in state.unresolved] == ["notes/café.md"]


class TestImages:
    def test_relative_image_becomes_asset(self, renderer: HtmlRenderer):
        html, state = renderer.render_markdown("![x](diagram.png)")
        assert 'src="https://example.com/static/diagram.png"' in html
        assert state.assets == [Asset(source="diagram.png", target="static/diagram.png")]

    def test_nested_image_flattened_to_static(self, renderer: HtmlRenderer):
        html, state = renderer.render_markdown("![x](img/chart.svg)")
        assert 'src="https://example.com/static/chart.svg"' in html
        assert state.assets == [Asset(source="img/chart.svg", target="static/chart.svg")]

    def test_non_ascii_image_source_kept_for_copying(self, renderer: HtmlRenderer):
        html, state = renderer.render_markdown("![x](Bild-ä.png)")
        assert state.assets == [Asset(source="Bild-ä.png", target="static/Bild-ä.png")]
        assert 'src="https://example.com/static/Bild-ä.png"' in html

    def test_absolute_image_untouched(self, renderer: HtmlRenderer):
        html, state = renderer.render_markdown("![x](https://cdn.example.com/a.png)")
        assert 'src="https://cdn.example.com/a.png"' in html
        assert state.assets == []


# ---------------------------------------------------------------------------
# Dialect
# ---------------------------------------------------------------------------


class TestDialect:
    def test_table(self, renderer: HtmlRenderer):
        html = _html(renderer, "| a | b |\n|---|---|\n| 1 | 2 |")
        assert "<table>" in html
        assert "<td>1</td>" in html

    def test_strikethrough(self, renderer: HtmlRenderer):
        assert "<s>gone</s>" in _html(renderer, "~~gone~~")

    def test_smart_quotes(self, renderer: HtmlRenderer):
        assert "“quoted”" in _html(renderer, 'He said "quoted".')

    def test_dashes_and_ellipsis(self, renderer: HtmlRenderer):
        html = _html(renderer, "pages 1--2 --- wait...")
        assert "pages 1–2 — wait…" in html

    def test_symbol_shortcuts_not_replaced(self, renderer: HtmlRenderer):
        assert "<p>Copyright (c) 2020 and (tm) +-</p>" in _html(renderer, "Copyright (c) 2020 and (tm) +-")

    def test_raw_html_passes_through(self, renderer: HtmlRenderer):
        assert '<span class="x">hi</span>' in _html(renderer, 'A <span class="x">hi</span> B')


# ---------------------------------------------------------------------------
# render(post)
# ---------------------------------------------------------------------------


class TestRenderPost:
    def test_rendered_post_collects_side_outputs(self, renderer: HtmlRenderer, tmp_path: Path):
        post = read_post(
            tmp_path / "Entry.md",
            "---\ntitle: Entry\n---\n![pic](pic.png) [bad](nope.md)\n",
            tmp_path,
        )
        rendered = renderer.render(post)
        assert rendered.post is post
        assert rendered.assets == [Asset("pic.png", "static/pic.png")]
        assert rendered.unresolved[0].source == "Entry.md"

    def test_render_state_is_fresh_per_call(self, renderer: HtmlRenderer):
        _, first = renderer.render_markdown("a^[x]")
        _, second = renderer.render_markdown("b^[y]")
        assert first.footnote_no == 1
        assert second.footnote_no == 1
        assert isinstance(second, RenderState)
