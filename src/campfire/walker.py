"""Directory traversal: find markdown sources and copy static trees."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterator
from pathlib import Path

logger = logging.getLogger(__name__)


def is_hidden(path: Path) -> bool:
    """Entries starting with ``.`` or ``_`` are never part of the site."""
    return path.name.startswith((".", "_"))


def find_markdown_files(root: Path) -> Iterator[tuple[Path, str]]:
    """Yield ``(path, text)`` for every ``.md`` file under *root*.

    Hidden entries (see :func:`is_hidden`) are skipped, including whole
    directories such as ``.campfire``.  Order is deterministic.  Files that
    are not valid UTF-8 are skipped with a warning.
    """
    for entry in sorted(Path(root).iterdir()):
        if is_hidden(entry):
            continue
        if entry.is_dir():
            yield from find_markdown_files(entry)
        elif entry.is_file() and entry.name.endswith(".md"):
            try:
                text = entry.read_text(encoding="utf-8")
            except UnicodeDecodeError as exc:
                logger.warning("Skipping %s: not valid UTF-8 (%s)", entry, exc.reason)
                continue
            yield entry, text


def copy_tree(source: Path, target: Path) -> int:
    """Recursively copy *source* into *target*; returns the number of files copied."""
    target.mkdir(parents=True, exist_ok=True)
    count = 0
    for entry in sorted(source.iterdir()):
        destination = target / entry.name
        if entry.is_dir():
            count += copy_tree(entry, destination)
        else:
            logger.debug("Copying %s to %s", entry, destination)
            shutil.copy2(entry, destination)
            count += 1
    return count
