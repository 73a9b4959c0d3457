"""Core sync engine that orchestrates one reconciliation pass.

The ``SyncEngine`` ties together the loader, remote inventory reader,
reconciler and mutation pipeline.  It:

1. Loads the local inventory (no remote call is made if this fails).
2. Resolves the root page and lists its child pages.
3. Reconciles titles into create, update and delete work-lists.
4. Applies the work-lists through the mutation pipeline.
5. Builds and returns a ``SyncReport``.

Item-level failures are recorded in the report; fatal ``SyncError``
subclasses propagate to the caller.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from ..config import Config
from ..core.client import PageStore
from .loader import DocumentLoader
from .models import SyncReport
from .page_builder import PageBuilder
from .pipeline import MutationPipeline, SyncPolicy
from .reconciler import reconcile
from .remote import RemoteInventoryReader

logger = logging.getLogger(__name__)


class SyncEngine:
    """Orchestrate a sync pass for one source folder and root page.

    Args:
        store: Remote page store (``NotionClient`` or a test double).
        source_root: Folder holding the Markdown documents.
        root_id: Id of the remote root page.
        builder: Renders documents into page blocks.
        policy: Failure and deletion policy.
    """

    def __init__(
        self,
        store: PageStore,
        source_root: Path,
        root_id: str,
        builder: PageBuilder,
        policy: SyncPolicy | None = None,
    ) -> None:
        self.store = store
        self.source_root = source_root
        self.root_id = root_id
        self.builder = builder
        self.policy = policy or SyncPolicy()

        self.loader = DocumentLoader(source_root)
        self.reader = RemoteInventoryReader(store)

    @classmethod
    def from_config(cls, store: PageStore, config: Config) -> SyncEngine:
        """Build an engine from a validated ``Config``."""
        source_root = Path(config.folder)
        workspace = Path(config.workspace) if config.workspace else source_root
        return cls(
            store=store,
            source_root=source_root,
            root_id=config.root_page_id,
            builder=PageBuilder(config.relative_urls_root, workspace),
            policy=SyncPolicy(
                tolerate_append_errors=config.ignore_create_errors,
                delete_orphans=config.delete_orphans,
            ),
        )

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    async def run(self, dry_run: bool = False) -> SyncReport:
        """Execute a full sync pass.

        Args:
            dry_run: If ``True``, compute the work-lists but do not apply
                them.

        Returns:
            A ``SyncReport`` summarising what was (or would be) done.
        """
        started_at = datetime.now(timezone.utc).isoformat()

        local = self.loader.load()
        logger.info(
            "Loaded %d document(s) from %s", len(local), self.source_root
        )

        inventory = await self.reader.read(self.root_id)
        logger.info(
            "Found %d child page(s) under root %s",
            len(inventory.nodes),
            inventory.root_id,
        )

        diff = reconcile(local, inventory.nodes)
        logger.info("Planned: %s", diff.summary())

        if dry_run:
            return SyncReport(
                root_page_id=self.root_id,
                dry_run=True,
                planned=diff,
                started_at=started_at,
                completed_at=datetime.now(timezone.utc).isoformat(),
            )

        pipeline = MutationPipeline(
            self.store,
            self.builder,
            self.root_id,
            policy=self.policy,
            known_ids=inventory.ids(),
        )
        results = await pipeline.run(diff)

        return SyncReport(
            root_page_id=self.root_id,
            planned=diff,
            results=results,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc).isoformat(),
        )
