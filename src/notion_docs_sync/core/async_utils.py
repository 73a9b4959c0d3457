"""Async bridging for the blocking Notion HTTP client."""

import asyncio
from typing import Any, Callable, TypeVar

T = TypeVar("T")


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a worker thread without blocking the event loop.

    The caller awaits the result before issuing the next remote call, so
    at most one request of a sync pass is ever in flight.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Example:
        client = NotionClient(config)
        page = await run_sync(client.retrieve_page, page_id)
    """
    return await asyncio.to_thread(func, *args, **kwargs)
