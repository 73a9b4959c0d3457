"""Typed exception hierarchy for a sync pass.

Fatal errors (everything below ``SyncError`` except ``BlockDeleteFailure``)
unwind to the pass boundary and end the process with a non-zero status.
``BlockDeleteFailure`` is fatal only for the update item that raised it.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base exception for all sync errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigError(SyncError):
    """Raised when required settings are missing or malformed."""


class LoadError(SyncError):
    """Raised when the local source tree cannot be read."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot load documents from {path}: {reason}")
        self.path = path
        self.reason = reason


class RootNotFoundError(SyncError):
    """Raised when the remote root page cannot be resolved."""

    def __init__(self, page_id: str, reason: str | None = None):
        message = f"Root page not found: {page_id}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.page_id = page_id


class CreateFailure(SyncError):
    """Raised when a child page shell could not be created."""

    def __init__(self, title: str, cause: Exception):
        super().__init__(f"Failed to create page '{title}': {cause}")
        self.title = title
        self.cause = cause


class AppendFailure(SyncError):
    """Raised when appending content fails and failures are not tolerated."""

    def __init__(self, title: str, page_id: str, cause: Exception):
        super().__init__(
            f"Failed to append blocks to page '{title}' ({page_id}): {cause}"
        )
        self.title = title
        self.page_id = page_id
        self.cause = cause


class BlockDeleteFailure(SyncError):
    """Raised when clearing a page's blocks stops part-way."""

    def __init__(self, block_id: str, deleted: int, cause: Exception):
        super().__init__(
            f"Failed to delete block {block_id} "
            f"after {deleted} deletion(s): {cause}"
        )
        self.block_id = block_id
        self.deleted = deleted
        self.cause = cause
