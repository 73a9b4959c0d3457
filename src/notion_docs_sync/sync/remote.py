"""Remote inventory: the child pages currently under the root page."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ..core.async_utils import run_sync
from ..core.client import NotionAPIError, PageStore
from ..errors import RootNotFoundError
from .models import RemoteNode

logger = logging.getLogger(__name__)


@dataclass
class RemoteInventory:
    """Root page id plus its child pages keyed by title, in listing order."""

    root_id: str
    nodes: dict[str, RemoteNode] = field(default_factory=dict)

    def ids(self) -> set[str]:
        return {node.id for node in self.nodes.values()}


def child_pages(blocks: list[dict[str, Any]]) -> dict[str, RemoteNode]:
    """Index child-page blocks by title; other block types are ignored."""
    nodes: dict[str, RemoteNode] = {}
    for block in blocks:
        child_page = block.get("child_page")
        if block.get("type") != "child_page" or not isinstance(child_page, dict):
            continue
        title = (child_page.get("title") or "").strip()
        block_id = block.get("id")
        if not title or not block_id:
            continue
        nodes[title] = RemoteNode(id=block_id, title=title)
    return nodes


class RemoteInventoryReader:
    """Read the remote inventory through an injected page store.

    Args:
        store: Remote page store (``NotionClient`` or a test double).
    """

    def __init__(self, store: PageStore) -> None:
        self.store = store

    async def read(self, root_id: str) -> RemoteInventory:
        """Resolve the root page and list its child pages.

        Raises:
            RootNotFoundError: If the root page cannot be retrieved or
                its children cannot be listed.
        """
        try:
            root = await run_sync(self.store.retrieve_page, root_id)
            blocks = await run_sync(self.store.list_children, root_id)
        except NotionAPIError as exc:
            raise RootNotFoundError(root_id, str(exc)) from exc

        nodes = child_pages(blocks)
        logger.debug(
            "Remote pages -> %s",
            {title: node.id for title, node in nodes.items()},
        )
        return RemoteInventory(root_id=root.get("id") or root_id, nodes=nodes)
