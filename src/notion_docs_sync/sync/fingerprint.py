"""Content fingerprints embedded in synced pages.

Every synced page ends with a footer paragraph carrying the SHA-256 of
the document body it was rendered from, tagged ``sha256:``.  On the next
pass the tag is read back from the page's last block and compared with
the current body; a match means the page is up to date and is left
untouched.
"""

from __future__ import annotations

import hashlib
import re
from datetime import datetime, timezone
from typing import Any

from ..converters.common import make_block, text_item

FINGERPRINT_TAG = "sha256:"

_FINGERPRINT_PATTERN = re.compile(r"^\s*sha256:\s*([0-9a-f]{64})\s*$")


def normalize_body(text: str) -> str:
    """Normalize line endings and drop leading/trailing blank lines."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return text.strip("\n")


def fingerprint(body: str) -> str:
    """Return the hex SHA-256 digest of the normalized *body*."""
    return hashlib.sha256(normalize_body(body).encode("utf-8")).hexdigest()


def fingerprint_block(
    body: str, generated_at: datetime | None = None
) -> dict[str, Any]:
    """Build the footer block recording the fingerprint of *body*.

    The block is a gray italic paragraph: an optional generation
    timestamp followed by ``sha256: <digest>``.
    """
    style = {"italic": True, "color": "gray"}
    rich_text = []
    if generated_at is not None:
        stamp = generated_at.astimezone(timezone.utc).strftime(
            "%Y-%m-%d %H:%M:%S UTC"
        )
        rich_text.append(text_item(f"Generated on {stamp}\n", **style))
    rich_text.append(
        text_item(f"{FINGERPRINT_TAG} {fingerprint(body)}", **style)
    )
    return make_block("paragraph", rich_text=rich_text)


def _plain_text(item: dict[str, Any]) -> str:
    if "plain_text" in item:
        return item["plain_text"] or ""
    return (item.get("text") or {}).get("content") or ""


def extract_fingerprint(block: dict[str, Any] | None) -> str | None:
    """Read the fingerprint back from a page's last block.

    Returns:
        The digest, or ``None`` when the block is missing, is not a
        paragraph, or carries no well-formed ``sha256:`` item.
    """
    if not block or block.get("type") != "paragraph":
        return None
    rich_text = (block.get("paragraph") or {}).get("rich_text") or []
    for item in rich_text:
        match = _FINGERPRINT_PATTERN.match(_plain_text(item))
        if match:
            return match.group(1)
    return None


def is_stale(last_block: dict[str, Any] | None, body: str) -> bool:
    """True when the page must be rewritten for *body*."""
    stored = extract_fingerprint(last_block)
    return stored is None or stored != fingerprint(body)
