"""Shared pytest fixtures for notion-docs-sync tests."""

from __future__ import annotations

import copy
from typing import Any

import pytest
from dotenv import load_dotenv

from notion_docs_sync.config import Config
from notion_docs_sync.core.client import NotFoundError, NotionAPIError

load_dotenv()

ROOT_ID = "0123456789abcdef0123456789abcdef"


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a live Notion workspace",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live Notion workspace"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


class FakePageStore:
    """In-memory page store recording every call.

    Child pages of the root are kept in insertion order.  Failures are
    injected per method (and optionally per target id) with ``fail_on``.
    """

    def __init__(self, root_id: str = ROOT_ID) -> None:
        self.root_id = root_id
        self.root_exists = True
        self.closed = False
        self.pages: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str]] = []
        self._failures: dict[tuple[str, str | None], list[Any]] = {}
        self._next_id = 0

    # -- test helpers ------------------------------------------------

    def _new_id(self, prefix: str) -> str:
        self._next_id += 1
        return f"{prefix}-{self._next_id}"

    def add_page(
        self, title: str, blocks: list[dict[str, Any]] | None = None
    ) -> str:
        page_id = self._new_id("page")
        self.pages[page_id] = {"title": title, "blocks": []}
        if blocks:
            self._store_blocks(page_id, blocks)
        return page_id

    def fail_on(
        self,
        method: str,
        error: Exception,
        target: str | None = None,
        times: int | None = None,
    ) -> None:
        """Raise *error* from *method* (for *target* only, if given),
        every time or only for the next *times* calls."""
        self._failures[(method, target)] = [error, times]

    def calls_to(self, method: str) -> list[str]:
        return [target for name, target in self.calls if name == method]

    def page_by_title(self, title: str) -> dict[str, Any]:
        for page in self.pages.values():
            if page["title"] == title:
                return page
        raise KeyError(title)

    def _record(self, method: str, target: str) -> None:
        self.calls.append((method, target))
        for key in ((method, target), (method, None)):
            failure = self._failures.get(key)
            if failure is None:
                continue
            error, remaining = failure
            if remaining is not None:
                if remaining <= 0:
                    continue
                failure[1] = remaining - 1
            raise error

    def _store_blocks(self, page_id: str, blocks: list[dict[str, Any]]) -> None:
        for block in blocks:
            stored = copy.deepcopy(block)
            stored["id"] = self._new_id("block")
            self.pages[page_id]["blocks"].append(stored)

    def close(self) -> None:
        self.closed = True

    # -- PageStore ---------------------------------------------------

    def retrieve_page(self, page_id: str) -> dict[str, Any]:
        self._record("retrieve_page", page_id)
        if page_id == self.root_id and self.root_exists:
            return {"object": "page", "id": page_id}
        if page_id in self.pages:
            return {"object": "page", "id": page_id}
        raise NotFoundError(f"Could not find page {page_id}", status=404)

    def list_children(self, block_id: str) -> list[dict[str, Any]]:
        self._record("list_children", block_id)
        if block_id == self.root_id and self.root_exists:
            return [
                {
                    "object": "block",
                    "id": page_id,
                    "type": "child_page",
                    "child_page": {"title": page["title"]},
                }
                for page_id, page in self.pages.items()
            ]
        if block_id in self.pages:
            return copy.deepcopy(self.pages[block_id]["blocks"])
        raise NotFoundError(f"Could not find block {block_id}", status=404)

    def create_page(self, parent_id: str, title: str) -> dict[str, Any]:
        self._record("create_page", title)
        if parent_id != self.root_id:
            raise NotFoundError(f"Could not find page {parent_id}", status=404)
        return {"object": "page", "id": self.add_page(title)}

    def append_children(
        self, block_id: str, blocks: list[dict[str, Any]]
    ) -> None:
        self._record("append_children", block_id)
        if block_id not in self.pages:
            raise NotFoundError(f"Could not find block {block_id}", status=404)
        self._store_blocks(block_id, blocks)

    def delete_block(self, block_id: str) -> None:
        self._record("delete_block", block_id)
        if block_id in self.pages:
            del self.pages[block_id]
            return
        for page in self.pages.values():
            for index, block in enumerate(page["blocks"]):
                if block["id"] == block_id:
                    del page["blocks"][index]
                    return
        raise NotionAPIError(f"Could not find block {block_id}", status=404)


@pytest.fixture
def store():
    """Empty in-memory page store rooted at ``ROOT_ID``."""
    return FakePageStore()


@pytest.fixture
def mock_config(tmp_path):
    """Create a Config instance for testing."""
    return Config(
        folder=str(tmp_path / "docs"),
        notion_token="secret_test_token",
        root_page_id=ROOT_ID,
        relative_urls_root="https://github.com/example/repo",
    )


@pytest.fixture
def docs_dir(tmp_path):
    """Factory fixture writing Markdown files under ``tmp_path/docs``."""
    root = tmp_path / "docs"
    root.mkdir()

    def _write(files: dict[str, str]):
        for rel_path, content in files.items():
            path = root / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return _write
