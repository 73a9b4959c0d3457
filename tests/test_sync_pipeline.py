"""Tests for the mutation pipeline and the block deletion sequencer."""

from __future__ import annotations

import logging

import pytest
from conftest import ROOT_ID

from notion_docs_sync.core.client import NotFoundError, NotionAPIError
from notion_docs_sync.errors import AppendFailure, BlockDeleteFailure, CreateFailure
from notion_docs_sync.sync.fingerprint import extract_fingerprint, fingerprint
from notion_docs_sync.sync.models import (
    CreateItem,
    DeleteItem,
    DiffResult,
    Document,
    ItemStatus,
    SyncAction,
    UpdateItem,
)
from notion_docs_sync.sync.page_builder import PageBuilder
from notion_docs_sync.sync.pipeline import (
    MutationPipeline,
    SyncPolicy,
    delete_blocks_sequentially,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def builder(tmp_path):
    return PageBuilder("https://github.com/o/r", tmp_path, stamp=False)


@pytest.fixture
def make_doc(tmp_path):
    def _make(title: str, body: str = "Body text.") -> Document:
        return Document(title=title, path=tmp_path / f"{title}.md", body=body)

    return _make


def _pipeline(store, builder, known_ids=None, **policy):
    return MutationPipeline(
        store,
        builder,
        ROOT_ID,
        policy=SyncPolicy(**policy),
        known_ids=known_ids,
    )


def _stale_page(store, title: str) -> str:
    """A page whose content predates fingerprints."""
    return store.add_page(
        title,
        [
            {"type": "paragraph", "paragraph": {"rich_text": []}},
            {"type": "divider", "divider": {}},
        ],
    )


# ---------------------------------------------------------------------------
# delete_blocks_sequentially
# ---------------------------------------------------------------------------


class TestDeleteBlocksSequentially:
    async def test_empty_is_noop(self, store):
        assert await delete_blocks_sequentially(store, []) == 0
        assert store.calls == []

    async def test_deletes_in_order(self, store):
        page_id = _stale_page(store, "P")
        ids = [b["id"] for b in store.pages[page_id]["blocks"]]

        assert await delete_blocks_sequentially(store, ids) == 2
        assert store.calls_to("delete_block") == ids
        assert store.pages[page_id]["blocks"] == []

    async def test_first_failure_stops(self, store):
        page_id = _stale_page(store, "P")
        first, second = [b["id"] for b in store.pages[page_id]["blocks"]]
        store.fail_on("delete_block", NotionAPIError("rate limited"), target=first)

        with pytest.raises(BlockDeleteFailure) as excinfo:
            await delete_blocks_sequentially(store, [first, second])

        assert excinfo.value.block_id == first
        assert excinfo.value.deleted == 0
        assert isinstance(excinfo.value.cause, NotionAPIError)
        assert store.calls_to("delete_block") == [first]

    async def test_reports_deleted_count(self, store):
        page_id = _stale_page(store, "P")
        first, second = [b["id"] for b in store.pages[page_id]["blocks"]]
        store.fail_on("delete_block", NotionAPIError("boom"), target=second)

        with pytest.raises(BlockDeleteFailure) as excinfo:
            await delete_blocks_sequentially(store, [first, second])

        assert excinfo.value.deleted == 1


# ---------------------------------------------------------------------------
# Phase ordering
# ---------------------------------------------------------------------------


async def test_phases_run_update_create_delete(store, builder, make_doc, caplog):
    keep_id = _stale_page(store, "Keep")
    old_id = store.add_page("Old")
    diff = DiffResult(
        to_create=[CreateItem(title="New", document=make_doc("New"))],
        to_update=[
            UpdateItem(title="Keep", document=make_doc("Keep"), remote_id=keep_id)
        ],
        to_delete=[DeleteItem(title="Old", remote_id=old_id)],
    )

    with caplog.at_level(logging.INFO):
        results = await _pipeline(store, builder, delete_orphans=True).run(diff)

    assert [r.action for r in results] == [
        SyncAction.UPDATE,
        SyncAction.CREATE,
        SyncAction.DELETE,
    ]
    assert all(r.status is ItemStatus.SUCCESS for r in results)

    methods = [name for name, _ in store.calls]
    last_update_call = max(
        i for i, call in enumerate(store.calls) if call[1] == keep_id
    )
    create_index = methods.index("create_page")
    assert last_update_call < create_index
    assert store.calls[-1] == ("delete_block", old_id)

    markers = [
        m for m in caplog.messages if m.startswith("--- ")
    ]
    assert markers == [
        "--- all pages updated",
        "--- new pages created",
        "--- sync complete",
    ]


async def test_empty_diff(store, builder):
    assert await _pipeline(store, builder).run(DiffResult()) == []
    assert store.calls == []


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


class TestCreate:
    async def test_creates_and_fills_page(self, store, builder, make_doc):
        doc = make_doc("Guide", "Step one.")
        result = await _pipeline(store, builder).create(
            CreateItem(title="Guide", document=doc)
        )

        assert result.status is ItemStatus.SUCCESS
        page = store.pages[result.page_id]
        assert page["title"] == "Guide"
        assert extract_fingerprint(page["blocks"][-1]) == fingerprint("Step one.")
        assert store.calls_to("create_page") == ["Guide"]

    async def test_create_failure_is_fatal(self, store, builder, make_doc):
        store.fail_on("create_page", NotionAPIError("unauthorized", status=401))
        diff = DiffResult(
            to_create=[
                CreateItem(title="A", document=make_doc("A")),
                CreateItem(title="B", document=make_doc("B")),
            ]
        )

        with pytest.raises(CreateFailure, match="'A'"):
            await _pipeline(store, builder).run(diff)

        assert store.calls_to("create_page") == ["A"]
        assert store.pages == {}

    async def test_append_failure_tolerated(self, store, builder, make_doc):
        store.fail_on("append_children", NotionAPIError("validation_error"))

        result = await _pipeline(store, builder).create(
            CreateItem(title="Guide", document=make_doc("Guide"))
        )

        assert result.status is ItemStatus.TOLERATED
        assert result.ok
        assert "validation_error" in result.error
        assert store.pages[result.page_id]["blocks"] == []

    async def test_append_failure_strict(self, store, builder, make_doc):
        store.fail_on("append_children", NotionAPIError("validation_error"))

        with pytest.raises(AppendFailure) as excinfo:
            await _pipeline(store, builder, tolerate_append_errors=False).create(
                CreateItem(title="Guide", document=make_doc("Guide"))
            )

        assert excinfo.value.title == "Guide"


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


class TestUpdate:
    async def test_unchanged_page_untouched(self, store, builder, make_doc):
        doc = make_doc("Guide", "Same body.")
        page_id = store.add_page("Guide", builder.build(doc))

        result = await _pipeline(store, builder).update(
            UpdateItem(title="Guide", document=doc, remote_id=page_id)
        )

        assert result.status is ItemStatus.UNCHANGED
        assert store.calls == [("list_children", page_id)]

    async def test_changed_page_replaced(self, store, builder, make_doc):
        page_id = _stale_page(store, "Guide")
        old_ids = [b["id"] for b in store.pages[page_id]["blocks"]]
        doc = make_doc("Guide", "New body.")

        result = await _pipeline(store, builder).update(
            UpdateItem(title="Guide", document=doc, remote_id=page_id)
        )

        assert result.status is ItemStatus.SUCCESS
        assert store.calls_to("delete_block") == old_ids
        assert store.calls[-1] == ("append_children", page_id)
        blocks = store.pages[page_id]["blocks"]
        assert not {b["id"] for b in blocks} & set(old_ids)
        assert extract_fingerprint(blocks[-1]) == fingerprint("New body.")

    async def test_edited_body_detected(self, store, builder, make_doc):
        page_id = store.add_page("Guide", builder.build(make_doc("Guide", "v1")))

        result = await _pipeline(store, builder).update(
            UpdateItem(title="Guide", document=make_doc("Guide", "v2"), remote_id=page_id)
        )

        assert result.status is ItemStatus.SUCCESS
        last = store.pages[page_id]["blocks"][-1]
        assert extract_fingerprint(last) == fingerprint("v2")

    async def test_vanished_page_skipped(self, store, builder, make_doc, caplog):
        diff = DiffResult(
            to_update=[
                UpdateItem(title="Gone", document=make_doc("Gone"), remote_id="page-x")
            ],
            to_create=[CreateItem(title="New", document=make_doc("New"))],
        )

        with caplog.at_level(logging.WARNING):
            results = await _pipeline(store, builder).run(diff)

        assert results[0].status is ItemStatus.SKIPPED
        assert results[1].status is ItemStatus.SUCCESS
        assert "not found under root" in caplog.text

    async def test_not_found_from_listing_skipped(self, store, builder, make_doc):
        page_id = _stale_page(store, "Guide")
        store.fail_on("list_children", NotFoundError("archived", status=404))

        result = await _pipeline(store, builder).update(
            UpdateItem(title="Guide", document=make_doc("Guide"), remote_id=page_id)
        )

        assert result.status is ItemStatus.SKIPPED
        assert store.calls_to("delete_block") == []

    async def test_unknown_id_skipped_without_calls(self, store, builder, make_doc):
        page_id = _stale_page(store, "Guide")

        result = await _pipeline(store, builder, known_ids={"page-other"}).update(
            UpdateItem(title="Guide", document=make_doc("Guide"), remote_id=page_id)
        )

        assert result.status is ItemStatus.SKIPPED
        assert store.calls == []

    async def test_listing_error_fails_item(self, store, builder, make_doc):
        page_id = _stale_page(store, "Guide")
        store.fail_on("list_children", NotionAPIError("server error", status=500))

        result = await _pipeline(store, builder).update(
            UpdateItem(title="Guide", document=make_doc("Guide"), remote_id=page_id)
        )

        assert result.status is ItemStatus.FAILED
        assert not result.ok

    async def test_block_delete_failure_fails_item(self, store, builder, make_doc):
        first_id = _stale_page(store, "First")
        second_id = _stale_page(store, "Second")
        failing_block = store.pages[first_id]["blocks"][1]["id"]
        store.fail_on("delete_block", NotionAPIError("conflict"), target=failing_block)
        diff = DiffResult(
            to_update=[
                UpdateItem(title="First", document=make_doc("First"), remote_id=first_id),
                UpdateItem(title="Second", document=make_doc("Second"), remote_id=second_id),
            ]
        )

        results = await _pipeline(store, builder).run(diff)

        assert results[0].status is ItemStatus.FAILED
        assert "after 1 deletion" in results[0].error
        assert first_id not in store.calls_to("append_children")
        assert results[1].status is ItemStatus.SUCCESS

    async def test_append_failure_posts_notice(self, store, builder, make_doc):
        page_id = _stale_page(store, "Guide")
        store.fail_on("append_children", NotionAPIError("too large"), times=1)

        result = await _pipeline(store, builder).update(
            UpdateItem(title="Guide", document=make_doc("Guide"), remote_id=page_id)
        )

        assert result.status is ItemStatus.TOLERATED
        assert store.calls_to("append_children") == [page_id, page_id]
        notice = store.pages[page_id]["blocks"]
        text = notice[0]["paragraph"]["rich_text"][0]["text"]["content"]
        assert text.startswith("Blocks appending failed with error: too large")

    async def test_notice_failure_only_logged(self, store, builder, make_doc, caplog):
        page_id = _stale_page(store, "Guide")
        store.fail_on("append_children", NotionAPIError("down"))

        with caplog.at_level(logging.ERROR):
            result = await _pipeline(store, builder).update(
                UpdateItem(title="Guide", document=make_doc("Guide"), remote_id=page_id)
            )

        assert result.status is ItemStatus.TOLERATED
        assert "Could not append error notice" in caplog.text

    async def test_append_failure_strict(self, store, builder, make_doc):
        page_id = _stale_page(store, "Guide")
        store.fail_on("append_children", NotionAPIError("too large"))

        with pytest.raises(AppendFailure):
            await _pipeline(store, builder, tolerate_append_errors=False).update(
                UpdateItem(title="Guide", document=make_doc("Guide"), remote_id=page_id)
            )

        # No notice is attempted in strict mode
        assert store.calls_to("append_children") == [page_id]


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


class TestDelete:
    async def test_disabled_by_default(self, store, builder):
        page_id = store.add_page("Orphan")

        result = await _pipeline(store, builder).delete(
            DeleteItem(title="Orphan", remote_id=page_id)
        )

        assert result.status is ItemStatus.DISABLED
        assert store.calls_to("delete_block") == []
        assert page_id in store.pages

    async def test_enabled(self, store, builder):
        page_id = store.add_page("Orphan")

        result = await _pipeline(store, builder, delete_orphans=True).delete(
            DeleteItem(title="Orphan", remote_id=page_id)
        )

        assert result.status is ItemStatus.SUCCESS
        assert page_id not in store.pages

    async def test_failure_continues(self, store, builder):
        first = store.add_page("A")
        second = store.add_page("B")
        store.fail_on("delete_block", NotionAPIError("locked"), target=first)
        diff = DiffResult(
            to_delete=[
                DeleteItem(title="A", remote_id=first),
                DeleteItem(title="B", remote_id=second),
            ]
        )

        results = await _pipeline(store, builder, delete_orphans=True).run(diff)

        assert [r.status for r in results] == [
            ItemStatus.FAILED,
            ItemStatus.SUCCESS,
        ]
        assert store.calls_to("delete_block") == [first, second]
