"""Three-way diff between the local and remote inventories."""

from __future__ import annotations

from collections.abc import Mapping

from .models import (
    CreateItem,
    DeleteItem,
    DiffResult,
    Document,
    RemoteNode,
    UpdateItem,
)


def reconcile(
    local: Mapping[str, Document], remote: Mapping[str, RemoteNode]
) -> DiffResult:
    """Partition titles into create, update and delete work-lists.

    Titles match by exact string equality after trimming.  Create and
    update items follow local inventory order; delete items follow
    remote listing order.  Pure: no I/O.
    """
    remote_by_title = {title.strip(): node for title, node in remote.items()}
    local_titles = {title.strip() for title in local}

    to_create: list[CreateItem] = []
    to_update: list[UpdateItem] = []
    for title, document in local.items():
        key = title.strip()
        node = remote_by_title.get(key)
        if node is None:
            to_create.append(CreateItem(title=key, document=document))
        else:
            to_update.append(
                UpdateItem(title=key, document=document, remote_id=node.id)
            )

    to_delete = [
        DeleteItem(title=title, remote_id=node.id)
        for title, node in remote_by_title.items()
        if title not in local_titles
    ]

    return DiffResult(
        to_create=to_create, to_update=to_update, to_delete=to_delete
    )
