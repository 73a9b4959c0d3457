"""Markdown to Notion block conversion."""

from .common import markdown_to_notion_lang
from .links import rewrite_links, rewrite_url
from .markdown_to_blocks import NotionBlockRenderer, markdown_to_blocks

__all__ = [
    "NotionBlockRenderer",
    "markdown_to_blocks",
    "markdown_to_notion_lang",
    "rewrite_links",
    "rewrite_url",
]
