"""Markdown folder to Notion page-tree sync.

One pass mirrors every Markdown document in a folder as a child page of
a single Notion root page, matched by title.  Change detection relies on
a content fingerprint stored as the last block of each page; there is no
local state between passes.

Modules:

- ``engine``       -- ``SyncEngine``: orchestrates a full pass.
- ``loader``       -- ``DocumentLoader``: local inventory by title.
- ``remote``       -- ``RemoteInventoryReader``: child pages of the root.
- ``reconciler``   -- ``reconcile``: create/update/delete work-lists.
- ``pipeline``     -- ``MutationPipeline``: applies the work-lists.
- ``fingerprint``  -- body hashing and the fingerprint footer block.
- ``page_builder`` -- ``PageBuilder``: full block list for a page.
- ``models``       -- core data contracts.
- ``reporter``     -- human-readable report formatting.

Usage example
-------------
::

    import asyncio

    from notion_docs_sync.config import load_config
    from notion_docs_sync.core.client import NotionClient
    from notion_docs_sync.sync import SyncEngine, format_sync_report

    config = load_config()
    engine = SyncEngine.from_config(NotionClient(config), config)

    # Dry-run first to preview changes
    preview = asyncio.run(engine.run(dry_run=True))
    print(format_sync_report(preview))

    report = asyncio.run(engine.run())
    print(format_sync_report(report))
"""

from .engine import SyncEngine
from .fingerprint import extract_fingerprint, fingerprint, is_stale
from .loader import DocumentLoader
from .models import (
    DiffResult,
    Document,
    ItemResult,
    ItemStatus,
    RemoteNode,
    SyncAction,
    SyncReport,
)
from .page_builder import PageBuilder
from .pipeline import MutationPipeline, SyncPolicy, delete_blocks_sequentially
from .reconciler import reconcile
from .remote import RemoteInventory, RemoteInventoryReader
from .reporter import format_dry_run_preview, format_sync_report

__all__ = [
    "DiffResult",
    "Document",
    "DocumentLoader",
    "ItemResult",
    "ItemStatus",
    "MutationPipeline",
    "PageBuilder",
    "RemoteInventory",
    "RemoteInventoryReader",
    "RemoteNode",
    "SyncAction",
    "SyncEngine",
    "SyncPolicy",
    "SyncReport",
    "delete_blocks_sequentially",
    "extract_fingerprint",
    "fingerprint",
    "format_dry_run_preview",
    "format_sync_report",
    "is_stale",
    "reconcile",
]
