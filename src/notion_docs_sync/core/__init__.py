"""Notion client and async helpers."""

from .async_utils import run_sync
from .client import NotFoundError, NotionAPIError, NotionClient, PageStore

__all__ = [
    "NotFoundError",
    "NotionAPIError",
    "NotionClient",
    "PageStore",
    "run_sync",
]
