"""Local document inventory.

Scans the source folder for Markdown files and indexes them by title.

Ordering:

1. ``README.md`` at the top of the folder (any case) comes first, so the
   landing document is created before the pages it links to.
2. Every other file keeps its discovery (sorted path) order.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from ..errors import LoadError
from ..file_handler import find_markdown_files, read_file_with_encoding
from .fingerprint import normalize_body
from .models import DEFAULT_TITLE, Document

logger = logging.getLogger(__name__)

_TITLE_PATTERN = re.compile(r"^#[ \t]+(\S.*)$", re.MULTILINE)
_HEADING_LINE_PATTERN = re.compile(r"^#[ \t]+\S")


def extract_title(content: str) -> str:
    """Return the first ``# heading`` text, or ``DEFAULT_TITLE``."""
    match = _TITLE_PATTERN.search(content)
    if match:
        return match.group(1).strip()
    return DEFAULT_TITLE


def strip_title(content: str) -> str:
    """Remove the first ATX heading line (``# ...``) from *content*."""
    lines = content.split("\n")
    for index, line in enumerate(lines):
        if _HEADING_LINE_PATTERN.match(line):
            del lines[index]
            break
    return "\n".join(lines)


def prioritize_readme(paths: list[Path], root: Path) -> list[Path]:
    """Move a top-level ``README.md`` to the front of *paths*."""
    for index, path in enumerate(paths):
        if path.parent == root and path.name.lower() == "readme.md":
            return [path, *paths[:index], *paths[index + 1 :]]
    return paths


class DocumentLoader:
    """Build the local inventory for one sync pass.

    Args:
        source_root: Folder holding the Markdown documents.
    """

    def __init__(self, source_root: Path) -> None:
        self.source_root = source_root

    def load(self) -> dict[str, Document]:
        """Read every document and index it by title.

        Returns:
            Ordered ``title -> Document`` mapping (README first).

        Raises:
            LoadError: If the folder or one of its files cannot be read.
        """
        root = self.source_root
        if not root.exists():
            raise LoadError(str(root), "path does not exist")
        if not root.is_dir():
            raise LoadError(str(root), "path is not a directory")

        try:
            paths = prioritize_readme(find_markdown_files(root), root)
        except OSError as exc:
            raise LoadError(str(root), str(exc)) from exc

        inventory: dict[str, Document] = {}
        for path in paths:
            document = self.load_document(path)
            # Last document wins but keeps the first one's position
            previous = inventory.get(document.title)
            if previous is not None:
                logger.warning(
                    "Duplicate title '%s': %s replaces %s",
                    document.title,
                    path,
                    previous.path,
                )
            inventory[document.title] = document

        logger.debug(
            "Documents by title -> %s",
            {title: str(doc.path) for title, doc in inventory.items()},
        )
        return inventory

    def load_document(self, path: Path) -> Document:
        """Read one file into a ``Document``."""
        try:
            content, _ = read_file_with_encoding(path)
        except OSError as exc:
            raise LoadError(str(path), str(exc)) from exc

        return Document(
            title=extract_title(content),
            path=path,
            body=normalize_body(strip_title(content)),
        )
