"""Compose the full block list written to a synced page.

Layout::

    spacer
    "View this file in GitHub" callout
    spacer
    <rendered document body, links rewritten>
    spacer
    divider
    spacer
    fingerprint footer   <- always the last block
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Any

from ..converters.common import (
    divider_block,
    make_block,
    paragraph_block,
    text_item,
)
from ..converters.links import rewrite_links, rewrite_url
from ..converters.markdown_to_blocks import markdown_to_blocks
from .fingerprint import fingerprint_block
from .models import Document

GITHUB_LOGO_URL = (
    "https://github.githubassets.com/images/modules/logos_page/GitHub-Mark.png"
)


class PageBuilder:
    """Render documents into page content.

    Args:
        urls_root: Repository URL (e.g. ``https://github.com/org/repo``).
        workspace_root: Checkout root that repository paths are relative to.
        stamp: Whether the footer carries a generation timestamp.
    """

    def __init__(
        self,
        urls_root: str,
        workspace_root: Path,
        stamp: bool = True,
    ) -> None:
        self.urls_root = urls_root.rstrip("/")
        self.workspace_root = workspace_root
        self.stamp = stamp

    def repo_link(self, path: Path) -> str:
        """Link to *path* in the repository browser."""
        relative = os.path.relpath(
            Path(path).resolve(), Path(self.workspace_root).resolve()
        )
        return f"{self.urls_root}/blob/master/{Path(relative).as_posix()}"

    def render_body(self, body: str) -> list[dict[str, Any]]:
        """Render a document body with links pointed at the repository."""
        blocks = markdown_to_blocks(body)
        return rewrite_links(blocks, partial(rewrite_url, urls_root=self.urls_root))

    def build(
        self, document: Document, generated_at: datetime | None = None
    ) -> list[dict[str, Any]]:
        """Return every block of the page for *document*."""
        if self.stamp and generated_at is None:
            generated_at = datetime.now(timezone.utc)

        return [
            paragraph_block(),
            self.github_link_block(self.repo_link(document.path)),
            paragraph_block(),
            *self.render_body(document.body),
            paragraph_block(),
            divider_block(),
            paragraph_block(),
            fingerprint_block(
                document.body, generated_at if self.stamp else None
            ),
        ]

    @staticmethod
    def github_link_block(url: str) -> dict[str, Any]:
        return make_block(
            "callout",
            icon={"type": "external", "external": {"url": GITHUB_LOGO_URL}},
            rich_text=[
                text_item("View this file in GitHub", link=url, bold=True)
            ],
        )

    @staticmethod
    def error_notice_blocks(error: Exception | str) -> list[dict[str, Any]]:
        """Visible in-page notice left when content could not be appended."""
        return markdown_to_blocks(
            f"Blocks appending failed with error: {error}"
        )
