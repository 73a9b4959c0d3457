import threading
from typing import Any, Protocol

import requests

from ..config import Config

NOTION_API_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"

# Notion caps both list page size and children per append request at 100
MAX_PAGE_SIZE = 100
MAX_APPEND_BLOCKS = 100


class NotionAPIError(Exception):
    """A Notion API call failed.

    Attributes:
        status: HTTP status code, or None for transport errors.
        code: Notion error code (e.g. ``validation_error``), if any.
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        code: str | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.code = code


class NotFoundError(NotionAPIError):
    """The requested page or block does not exist or is not shared."""


class PageStore(Protocol):
    """Remote page tree operations consumed by the sync engine."""

    def retrieve_page(self, page_id: str) -> dict[str, Any]: ...

    def list_children(self, block_id: str) -> list[dict[str, Any]]: ...

    def create_page(self, parent_id: str, title: str) -> dict[str, Any]: ...

    def append_children(
        self, block_id: str, blocks: list[dict[str, Any]]
    ) -> None: ...

    def delete_block(self, block_id: str) -> None: ...


class NotionClient:
    def __init__(self, config: Config, base_url: str = NOTION_API_URL):
        self.config = config
        self.base_url = base_url.rstrip("/")
        self._thread_local = threading.local()
        self._sessions: list[requests.Session] = []
        self._sessions_lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        """The current thread's session."""
        return self._get_session()

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session.

        Calls are dispatched through ``asyncio.to_thread``, so the worker
        thread may differ between calls.
        """
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        with self._sessions_lock:
            self._sessions.append(session)
        session.headers.update(
            {
                "Authorization": f"Bearer {self.config.notion_token}",
                "Notion-Version": NOTION_VERSION,
                "Content-Type": "application/json",
            }
        )
        return session

    def close(self) -> None:
        """Close every session opened by any worker thread."""
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
        self._thread_local = threading.local()

    def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Make a request to the Notion API and return the decoded body.
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self._get_session().request(
                method,
                url,
                json=json,
                params=params,
                timeout=(10, 60),
            )
        except requests.RequestException as exc:
            raise NotionAPIError(
                f"{method} {path} failed: {exc}"
            ) from exc

        if response.status_code >= 400:
            raise self._error_from_response(method, path, response)

        if not response.content:
            return {}
        return response.json()

    @staticmethod
    def _error_from_response(
        method: str, path: str, response: requests.Response
    ) -> NotionAPIError:
        code = None
        detail = response.reason or "request failed"
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            code = body.get("code")
            detail = body.get("message") or detail

        message = (
            f"{method} {path} returned {response.status_code}: {detail}"
        )
        if response.status_code == 404 or code == "object_not_found":
            return NotFoundError(
                message, status=response.status_code, code=code
            )
        return NotionAPIError(
            message, status=response.status_code, code=code
        )

    def retrieve_page(self, page_id: str) -> dict[str, Any]:
        """
        Retrieve a page object by id.

        Raises:
            NotFoundError: If the page does not exist or is not shared
                with the integration.
        """
        return self._request("GET", f"pages/{page_id}")

    def list_children(self, block_id: str) -> list[dict[str, Any]]:
        """
        List all direct children of a page or block, following pagination.
        """
        results: list[dict[str, Any]] = []
        cursor: str | None = None
        while True:
            params: dict[str, Any] = {"page_size": MAX_PAGE_SIZE}
            if cursor:
                params["start_cursor"] = cursor
            body = self._request(
                "GET", f"blocks/{block_id}/children", params=params
            )
            results.extend(body.get("results", []))
            if not body.get("has_more"):
                return results
            cursor = body.get("next_cursor")
            if not cursor:
                return results

    def create_page(self, parent_id: str, title: str) -> dict[str, Any]:
        """
        Create an empty child page titled *title* under *parent_id*.
        """
        if not title or not title.strip():
            raise ValueError("Page title is required and cannot be empty")

        payload = {
            "parent": {"type": "page_id", "page_id": parent_id},
            "properties": {
                "title": {
                    "type": "title",
                    "title": [{"type": "text", "text": {"content": title}}],
                }
            },
        }
        return self._request("POST", "pages", json=payload)

    def append_children(
        self, block_id: str, blocks: list[dict[str, Any]]
    ) -> None:
        """
        Append blocks to a page or block.

        Blocks are sent in order, in sequential requests of at most
        ``MAX_APPEND_BLOCKS`` children each.
        """
        for start in range(0, len(blocks), MAX_APPEND_BLOCKS):
            chunk = blocks[start : start + MAX_APPEND_BLOCKS]
            self._request(
                "PATCH",
                f"blocks/{block_id}/children",
                json={"children": chunk},
            )

    def delete_block(self, block_id: str) -> None:
        """
        Delete (archive) a block. Child pages are blocks too.
        """
        self._request("DELETE", f"blocks/{block_id}")
