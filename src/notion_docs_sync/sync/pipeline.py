"""Apply a ``DiffResult`` to the remote page tree.

Phases run strictly in order (update, then create, then delete) and items
within a phase run one at a time: each remote call is awaited before the
next one is issued.

Failure policy per item:

- page creation fails            -> ``CreateFailure``, aborts the pass
- content append fails           -> tolerated (logged) or ``AppendFailure``
- clearing an updated page fails -> item FAILED, pass continues
- updated page vanished          -> item SKIPPED, pass continues
- orphan deletion fails          -> item FAILED, pass continues
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..core.async_utils import run_sync
from ..core.client import NotFoundError, PageStore
from ..errors import AppendFailure, BlockDeleteFailure, CreateFailure
from .fingerprint import is_stale
from .models import (
    CreateItem,
    DeleteItem,
    DiffResult,
    ItemResult,
    ItemStatus,
    RemoteNode,
    SyncAction,
    UpdateItem,
)
from .page_builder import PageBuilder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncPolicy:
    """Failure and deletion policy for a pass.

    Attributes:
        tolerate_append_errors: Log and continue when appending content
            fails instead of aborting the pass.
        delete_orphans: Delete remote pages that have no local document.
    """

    tolerate_append_errors: bool = True
    delete_orphans: bool = False


async def delete_blocks_sequentially(
    store: PageStore, block_ids: list[str]
) -> int:
    """Delete *block_ids* one at a time, in order.

    Returns:
        Number of blocks deleted.

    Raises:
        BlockDeleteFailure: On the first failed deletion; later ids are
            not attempted.
    """
    deleted = 0
    for block_id in block_ids:
        try:
            await run_sync(store.delete_block, block_id)
        except Exception as exc:
            raise BlockDeleteFailure(block_id, deleted, exc) from exc
        deleted += 1
        logger.debug("Block deleted: %s", block_id)
    if deleted:
        logger.debug("Block deletion complete (%d blocks)", deleted)
    return deleted


class MutationPipeline:
    """Run the update, create and delete phases against a page store.

    Args:
        store: Remote page store.
        builder: Renders documents into page blocks.
        root_id: Id of the root page new pages are created under.
        policy: Failure and deletion policy.
        known_ids: Ids of the pages listed under the root at the start of
            the pass; update items outside this set are skipped.
    """

    def __init__(
        self,
        store: PageStore,
        builder: PageBuilder,
        root_id: str,
        policy: SyncPolicy | None = None,
        known_ids: set[str] | None = None,
    ) -> None:
        self.store = store
        self.builder = builder
        self.root_id = root_id
        self.policy = policy or SyncPolicy()
        self.known_ids = known_ids

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    async def run(self, diff: DiffResult) -> list[ItemResult]:
        """Apply *diff*; fatal errors propagate to the caller.

        Returns:
            One ``ItemResult`` per work-list item, in execution order.
        """
        results: list[ItemResult] = []

        for update_item in diff.to_update:
            results.append(await self.update(update_item))
        logger.info("--- all pages updated")

        for create_item in diff.to_create:
            results.append(await self.create(create_item))
        logger.info("--- new pages created")

        for delete_item in diff.to_delete:
            results.append(await self.delete(delete_item))
        logger.info("--- sync complete")

        return results

    # ------------------------------------------------------------------
    # Per-item operations
    # ------------------------------------------------------------------

    async def update(self, item: UpdateItem) -> ItemResult:
        """Replace a page's content when its fingerprint is stale."""
        if self.known_ids is not None and item.remote_id not in self.known_ids:
            return self._skipped(item, "page is not listed under the root")

        try:
            blocks = await run_sync(self.store.list_children, item.remote_id)
        except NotFoundError as exc:
            return self._skipped(item, str(exc))
        except Exception as exc:
            logger.error("Could not list blocks of '%s': %s", item.title, exc)
            return self._result(item, ItemStatus.FAILED, error=str(exc))

        logger.debug("Found page '%s' (%s)", item.title, item.remote_id)

        node = RemoteNode(id=item.remote_id, title=item.title).with_blocks(blocks)
        if not is_stale(node.fingerprint_block, item.document.body):
            logger.debug("Unchanged: %s", item.document.path)
            return self._result(item, ItemStatus.UNCHANGED)

        logger.debug("Changed: %s", item.document.path)
        try:
            new_blocks = self.builder.build(item.document)
        except Exception as exc:
            logger.error("Could not render %s: %s", item.document.path, exc)
            return self._result(item, ItemStatus.FAILED, error=str(exc))

        try:
            await delete_blocks_sequentially(
                self.store, [block["id"] for block in blocks]
            )
        except BlockDeleteFailure as exc:
            logger.error(
                "Page '%s' left partially cleared: %s", item.title, exc
            )
            return self._result(item, ItemStatus.FAILED, error=str(exc))

        try:
            await run_sync(
                self.store.append_children, item.remote_id, new_blocks
            )
        except Exception as exc:
            if not self.policy.tolerate_append_errors:
                raise AppendFailure(item.title, item.remote_id, exc) from exc
            logger.warning(
                "Blocks appending failed for '%s', error ignored: %s",
                item.title,
                exc,
            )
            await self._post_error_notice(item.remote_id, exc)
            return self._result(item, ItemStatus.TOLERATED, error=str(exc))

        logger.info("Page updated: %s", item.title)
        return self._result(item, ItemStatus.SUCCESS)

    async def create(self, item: CreateItem) -> ItemResult:
        """Create a child page under the root and fill it."""
        try:
            new_blocks = self.builder.build(item.document)
        except Exception as exc:
            logger.error("Could not render %s: %s", item.document.path, exc)
            return ItemResult(
                action=SyncAction.CREATE,
                title=item.title,
                status=ItemStatus.FAILED,
                error=str(exc),
            )

        try:
            page = await run_sync(
                self.store.create_page, self.root_id, item.title
            )
        except Exception as exc:
            raise CreateFailure(item.title, exc) from exc

        page_id = page.get("id")
        logger.info("Page created: %s", item.title)

        try:
            await run_sync(self.store.append_children, page_id, new_blocks)
        except Exception as exc:
            if not self.policy.tolerate_append_errors:
                raise AppendFailure(item.title, page_id, exc) from exc
            logger.warning(
                "Blocks appending failed for '%s', but error ignored: %s",
                item.title,
                exc,
            )
            return ItemResult(
                action=SyncAction.CREATE,
                title=item.title,
                page_id=page_id,
                status=ItemStatus.TOLERATED,
                error=str(exc),
            )

        return ItemResult(
            action=SyncAction.CREATE,
            title=item.title,
            page_id=page_id,
            status=ItemStatus.SUCCESS,
        )

    async def delete(self, item: DeleteItem) -> ItemResult:
        """Delete an orphaned page when the policy allows it."""
        if not self.policy.delete_orphans:
            logger.info(
                "Deletion disabled, keeping orphan page '%s' (%s)",
                item.title,
                item.remote_id,
            )
            return self._deleted(item, ItemStatus.DISABLED)

        try:
            await run_sync(self.store.delete_block, item.remote_id)
        except Exception as exc:
            logger.error("Could not delete page '%s': %s", item.title, exc)
            return self._deleted(item, ItemStatus.FAILED, error=str(exc))

        logger.info("Page deleted: %s", item.title)
        return self._deleted(item, ItemStatus.SUCCESS)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _post_error_notice(self, page_id: str, error: Exception) -> None:
        """Best-effort: leave a visible notice on a page that lost its body."""
        logger.info("Trying to append error notice on page %s", page_id)
        try:
            await run_sync(
                self.store.append_children,
                page_id,
                self.builder.error_notice_blocks(error),
            )
        except Exception as exc:
            logger.error(
                "Could not append error notice on page %s: %s", page_id, exc
            )

    def _skipped(self, item: UpdateItem, reason: str) -> ItemResult:
        logger.warning(
            "Page '%s' not found under root, skipping %s: %s",
            item.title,
            item.document.path,
            reason,
        )
        return self._result(item, ItemStatus.SKIPPED, error=reason)

    @staticmethod
    def _result(
        item: UpdateItem, status: ItemStatus, error: str | None = None
    ) -> ItemResult:
        return ItemResult(
            action=SyncAction.UPDATE,
            title=item.title,
            page_id=item.remote_id,
            status=status,
            error=error,
        )

    @staticmethod
    def _deleted(
        item: DeleteItem, status: ItemStatus, error: str | None = None
    ) -> ItemResult:
        return ItemResult(
            action=SyncAction.DELETE,
            title=item.title,
            page_id=item.remote_id,
            status=status,
            error=error,
        )
