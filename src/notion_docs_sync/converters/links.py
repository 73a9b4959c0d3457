"""Link target rewriting for rendered Notion blocks.

Documents link to siblings and images with paths relative to the
repository.  Those targets mean nothing inside Notion, so they are
pointed back at the repository browser instead.
"""

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

UrlRewriter = Callable[[str], str]


def rewrite_url(url: str, urls_root: str) -> str:
    """Map one link target to its published location.

    - absolute ``http``/``https`` URLs pass through unchanged;
    - fragment-only URLs (``#section``) become *urls_root*, since
      anchors cannot be resolved to Notion blocks;
    - anything else is treated as a repository-relative path and becomes
      ``<urls_root>/tree/master/<url>``.

    Examples:
        >>> rewrite_url("http://x", "https://github.com/o/r")
        'http://x'
        >>> rewrite_url("#anchor", "https://github.com/o/r")
        'https://github.com/o/r'
        >>> rewrite_url("images/a.png", "https://github.com/o/r")
        'https://github.com/o/r/tree/master/images/a.png'
    """
    if url.startswith("http"):
        return url
    if url.startswith("#"):
        logger.debug("Fixing #-url -> %s", url)
        return urls_root
    logger.debug("Fixing relative url -> %s", url)
    return f"{urls_root}/tree/master/{url}"


def rewrite_links(node: Any, rewrite: UrlRewriter) -> Any:
    """Rewrite every link-shaped node in a block tree in place.

    Two shapes are recognised:

    - rich text: ``{"type": "text", "text": {"link": {"url": ...}}}``
    - external files (images): ``{"type": "external", "external": {"url": ...}}``

    Other fields named ``url`` (bookmarks, embeds, icons added later) are
    left alone.  Returns *node* for chaining.
    """
    if isinstance(node, list):
        for child in node:
            rewrite_links(child, rewrite)
        return node

    if not isinstance(node, dict):
        return node

    if node.get("type") == "text":
        link = node.get("text", {}).get("link")
        if isinstance(link, dict) and isinstance(link.get("url"), str):
            link["url"] = rewrite(link["url"])
    elif node.get("type") == "external":
        external = node.get("external")
        if isinstance(external, dict) and isinstance(external.get("url"), str):
            external["url"] = rewrite(external["url"])

    for value in node.values():
        if isinstance(value, (dict, list)):
            rewrite_links(value, rewrite)
    return node
