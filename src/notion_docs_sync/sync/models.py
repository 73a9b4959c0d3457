"""Pydantic models for the sync engine.

Defines the core data contracts used across all sync modules:

- ``Document``: One local Markdown document.
- ``RemoteNode``: One child page of the remote root.
- ``CreateItem``, ``UpdateItem``, ``DeleteItem``, ``DiffResult``: The
  reconciler's three work-lists.
- ``SyncAction``, ``ItemStatus``, ``ItemResult``: Per-item outcomes.
- ``SyncReport``: Aggregate results for a full sync pass.

All models are frozen (immutable) for safety.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel

DEFAULT_TITLE = "Default Title"


class Document(BaseModel):
    """A local Markdown document.

    Attributes:
        title: Text of the first heading, or ``DEFAULT_TITLE``.
        path: Location of the file on disk.
        body: Normalized content with the title heading line removed.
    """

    title: str
    path: Path
    body: str

    model_config = {"frozen": True}


class RemoteNode(BaseModel):
    """A child page of the remote root.

    Attributes:
        id: Notion page (block) id.
        title: Page title.
        fingerprint_block: Last content block of the page, once listed.
    """

    id: str
    title: str
    fingerprint_block: dict[str, Any] | None = None

    model_config = {"frozen": True}

    def with_blocks(self, blocks: list[dict[str, Any]]) -> RemoteNode:
        """Copy of this node carrying the last of its listed blocks."""
        return self.model_copy(
            update={"fingerprint_block": blocks[-1] if blocks else None}
        )


class CreateItem(BaseModel):
    title: str
    document: Document

    model_config = {"frozen": True}


class UpdateItem(BaseModel):
    title: str
    document: Document
    remote_id: str

    model_config = {"frozen": True}


class DeleteItem(BaseModel):
    title: str
    remote_id: str

    model_config = {"frozen": True}


class DiffResult(BaseModel):
    """Three disjoint, ordered work-lists produced by ``reconcile()``."""

    to_create: list[CreateItem] = []
    to_update: list[UpdateItem] = []
    to_delete: list[DeleteItem] = []

    model_config = {"frozen": True}

    def summary(self) -> str:
        return (
            f"{len(self.to_create)} to create, "
            f"{len(self.to_update)} to update, "
            f"{len(self.to_delete)} to delete"
        )


class SyncAction(str, Enum):
    """Mutation applied to one page."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ItemStatus(str, Enum):
    """Outcome of one pipeline item."""

    SUCCESS = "success"
    UNCHANGED = "unchanged"
    TOLERATED = "tolerated"
    SKIPPED = "skipped"
    FAILED = "failed"
    DISABLED = "disabled"


class ItemResult(BaseModel):
    """Result of applying one work-list item.

    Attributes:
        action: Phase the item belongs to.
        title: Page title.
        page_id: Remote page id, when one exists.
        status: Outcome of the item.
        error: Error message for tolerated, skipped or failed items.
    """

    action: SyncAction
    title: str
    page_id: str | None = None
    status: ItemStatus
    error: str | None = None

    model_config = {"frozen": True}

    @property
    def ok(self) -> bool:
        return self.status is not ItemStatus.FAILED


class SyncReport(BaseModel):
    """Aggregate report for a full sync pass.

    Attributes:
        root_page_id: Remote root page id.
        dry_run: Whether this was a dry-run (no changes applied).
        planned: Diff computed for the pass.
        results: Individual item results, in execution order.
        started_at: ISO 8601 timestamp when the pass started.
        completed_at: ISO 8601 timestamp when the pass completed.
    """

    root_page_id: str
    dry_run: bool = False
    planned: DiffResult = DiffResult()
    results: list[ItemResult] = []
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    def _with(self, action: SyncAction, *statuses: ItemStatus) -> list[ItemResult]:
        return [
            r
            for r in self.results
            if r.action == action and r.status in statuses
        ]

    @property
    def created(self) -> list[ItemResult]:
        """Pages created (including ones whose content append was tolerated)."""
        return self._with(
            SyncAction.CREATE, ItemStatus.SUCCESS, ItemStatus.TOLERATED
        )

    @property
    def updated(self) -> list[ItemResult]:
        """Pages whose content was replaced."""
        return self._with(
            SyncAction.UPDATE, ItemStatus.SUCCESS, ItemStatus.TOLERATED
        )

    @property
    def unchanged(self) -> list[ItemResult]:
        return self._with(SyncAction.UPDATE, ItemStatus.UNCHANGED)

    @property
    def deleted(self) -> list[ItemResult]:
        return self._with(SyncAction.DELETE, ItemStatus.SUCCESS)

    @property
    def tolerated(self) -> list[ItemResult]:
        return [r for r in self.results if r.status == ItemStatus.TOLERATED]

    @property
    def skipped(self) -> list[ItemResult]:
        return [r for r in self.results if r.status == ItemStatus.SKIPPED]

    @property
    def deletions_disabled(self) -> list[ItemResult]:
        return self._with(SyncAction.DELETE, ItemStatus.DISABLED)

    @property
    def errors(self) -> list[ItemResult]:
        """Results whose status is FAILED."""
        return [r for r in self.results if not r.ok]

    def summary(self) -> str:
        """Format a human-readable summary of the sync pass.

        Returns:
            Multi-line summary string with counts by outcome.
        """
        lines = [
            f"Sync report for root page {self.root_page_id}"
            + (" (dry run)" if self.dry_run else ""),
            f"  Planned:    {self.planned.summary()}",
            f"  Created:    {len(self.created)}",
            f"  Updated:    {len(self.updated)}",
            f"  Unchanged:  {len(self.unchanged)}",
            f"  Deleted:    {len(self.deleted)}",
            f"  Tolerated:  {len(self.tolerated)}",
            f"  Skipped:    {len(self.skipped)}",
            f"  Errors:     {len(self.errors)}",
        ]
        return "\n".join(lines)
