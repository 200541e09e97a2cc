"""Footnote preprocessing.

Obsidian writes inline footnotes as ``^[text]``, which CommonMark parsers do
not understand.  Before a body is parsed, :func:`preprocess` rewrites them to
reference-style footnotes and pulls every definition line out of the prose so
the renderer can emit the footnote list itself.

::

    See this.^[a note] here.        ->  See this.[^fn-0] here.
                                        [^fn-0]: a note
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFINITION_PREFIX = "[^"

# ^[text] -- one bracket pair per match
_INLINE_FOOTNOTE_RE = re.compile(r"\^\[(.*?)\]")
# [^label]: text
_DEFINITION_RE = re.compile(r"^\[\^([^\]]+)\]:?[ \t]*(.*)$")


@dataclass(frozen=True)
class Footnote:
    label: str
    text: str

    def to_line(self) -> str:
        return f"[^{self.label}]: {self.text}"


def is_definition(line: str) -> bool:
    return line.startswith(DEFINITION_PREFIX)


def parse_definition(line: str, position: int = 0) -> Footnote:
    """Split a ``[^label]: text`` line into a :class:`Footnote`.

    A line that starts with ``[^`` but has no closing bracket still counts as
    a definition; it gets the synthetic label ``fn-<position>``.
    """
    m = _DEFINITION_RE.match(line)
    if m:
        return Footnote(m.group(1), m.group(2).strip())
    logger.warning("Footnote definition without a label: %r", line)
    return Footnote(f"fn-{position}", line[len(DEFINITION_PREFIX):].strip())


def desugar_line(line: str, definitions: list[str]) -> str:
    """Replace every ``^[text]`` in *line* by ``[^fn-<k>]``.

    ``k`` is ``len(definitions)`` at the time of the match; the generated
    ``[^fn-<k>]: text`` definition is appended to *definitions*.
    """

    def _replace(m: re.Match[str]) -> str:
        label = f"fn-{len(definitions)}"
        definitions.append(f"[^{label}]: {m.group(1)}")
        return f"[^{label}]"

    return _INLINE_FOOTNOTE_RE.sub(_replace, line)


def preprocess(body: str) -> tuple[str, list[str]]:
    """Partition *body* into prose and footnote definition lines.

    Returns ``(prose, definitions)``.  ``definitions`` holds pre-existing
    definition lines and the ones synthesised from inline footnotes, in the
    order they were encountered.
    """
    definitions: list[str] = []
    prose: list[str] = []
    for line in body.splitlines():
        if is_definition(line):
            definitions.append(line)
        else:
            prose.append(desugar_line(line, definitions))
    return "\n".join(prose), definitions


def collect(body: str) -> tuple[str, list[Footnote]]:
    """Like :func:`preprocess` but with definitions parsed into :class:`Footnote` s."""
    prose, lines = preprocess(body)
    return prose, [parse_definition(line, i) for i, line in enumerate(lines)]
