"""Markdown to Notion block conversion using mistune AST rendering."""

from typing import Any

import mistune

from .common import (
    divider_block,
    make_block,
    markdown_to_notion_lang,
    paragraph_block,
    split_rich_text,
    text_item,
)

Block = dict[str, Any]
RichText = list[dict[str, Any]]

# A single append request accepts two levels of nested children
MAX_NESTING = 2

_HEADING_TYPES = {1: "heading_1", 2: "heading_2", 3: "heading_3"}


class NotionBlockRenderer(mistune.BaseRenderer):
    """Renderer that converts the Markdown AST to Notion block payloads.

    Unlike string renderers, block-level tokens render to lists of block
    dicts and inline tokens render to lists of rich text objects.
    """

    NAME = "notion"

    def __call__(self, tokens, state) -> list[Block]:  # type: ignore[override]
        return self.render_blocks(tokens, depth=0)

    # ------------------------------------------------------------------
    # Block level
    # ------------------------------------------------------------------

    def render_blocks(
        self, tokens: list[dict[str, Any]], depth: int
    ) -> list[Block]:
        """Render a sequence of block tokens at the given nesting depth."""
        blocks: list[Block] = []
        for token in tokens:
            blocks.extend(self.render_block(token, depth))
        return blocks

    def render_block(self, token: dict[str, Any], depth: int) -> list[Block]:
        token_type = token.get("type") or ""
        handler = getattr(self, f"_block_{token_type}", None)
        if handler is None:
            # Unknown block tokens degrade to their raw text
            raw = token.get("raw") or self._plain_text(token)
            return [paragraph_block(self._text(raw))] if raw.strip() else []
        return handler(token, depth)

    def _block_blank_line(self, token, depth) -> list[Block]:
        return []

    def _block_paragraph(self, token, depth) -> list[Block]:
        # Images are block-level in Notion: split the paragraph around them
        blocks: list[Block] = []
        segment: list[dict[str, Any]] = []
        for child in token.get("children", []):
            if child.get("type") == "image":
                blocks.extend(self._text_paragraph(segment))
                blocks.append(self._image_block(child))
                segment = []
            else:
                segment.append(child)
        blocks.extend(self._text_paragraph(segment))
        return blocks

    def _text_paragraph(self, inline: list[dict[str, Any]]) -> list[Block]:
        rich_text = _trim_edges(self.render_inline(inline))
        if not rich_text:
            return []
        return [paragraph_block(rich_text)]

    def _block_block_text(self, token, depth) -> list[Block]:
        return self._block_paragraph(token, depth)

    def _block_heading(self, token, depth) -> list[Block]:
        level = token.get("attrs", {}).get("level", 1)
        block_type = _HEADING_TYPES.get(level, "heading_3")
        rich_text = self.render_inline(token.get("children", []))
        return [make_block(block_type, rich_text=rich_text)]

    def _block_block_code(self, token, depth) -> list[Block]:
        code = token.get("raw", "").rstrip("\n")
        info = token.get("attrs", {}).get("info")
        return [
            make_block(
                "code",
                rich_text=split_rich_text([text_item(code)]) if code else [],
                language=markdown_to_notion_lang(info),
            )
        ]

    def _block_thematic_break(self, token, depth) -> list[Block]:
        return [divider_block()]

    def _block_block_html(self, token, depth) -> list[Block]:
        raw = token.get("raw", "").strip()
        return [paragraph_block(self._text(raw))] if raw else []

    def _block_block_quote(self, token, depth) -> list[Block]:
        inner = self.render_blocks(token.get("children", []), depth + 1)
        rich_text: RichText = []
        if inner and inner[0]["type"] == "paragraph":
            rich_text = inner.pop(0)["paragraph"]["rich_text"]
        quote = make_block("quote", rich_text=rich_text)
        return self._attach_children(quote, inner, depth)

    def _block_list(self, token, depth) -> list[Block]:
        ordered = token.get("attrs", {}).get("ordered", False)
        item_type = "numbered_list_item" if ordered else "bulleted_list_item"
        blocks: list[Block] = []
        for item in token.get("children", []):
            blocks.extend(self._list_item(item, item_type, depth))
        return blocks

    def _list_item(
        self, token: dict[str, Any], item_type: str, depth: int
    ) -> list[Block]:
        children = token.get("children", [])
        head: RichText = []
        rest = children
        if children and children[0].get("type") in ("block_text", "paragraph"):
            head = self.render_inline(children[0].get("children", []))
            rest = children[1:]

        if token.get("type") == "task_list_item":
            checked = bool(token.get("attrs", {}).get("checked"))
            block = make_block("to_do", rich_text=head, checked=checked)
        else:
            block = make_block(item_type, rich_text=head)

        nested = self.render_blocks(rest, depth + 1)
        return self._attach_children(block, nested, depth)

    def _block_table(self, token, depth) -> list[Block]:
        rows: list[list[RichText]] = []
        has_header = False
        for section in token.get("children", []):
            if section.get("type") == "table_head":
                has_header = True
                rows.append(self._table_cells(section))
            elif section.get("type") == "table_body":
                for row in section.get("children", []):
                    rows.append(self._table_cells(row))
        if not rows:
            return []

        width = max(len(r) for r in rows)
        row_blocks = [
            make_block("table_row", cells=r + [[] for _ in range(width - len(r))])
            for r in rows
        ]
        table = make_block(
            "table",
            table_width=width,
            has_column_header=has_header,
            has_row_header=False,
        )
        # Tables cannot be created without their rows
        table["table"]["children"] = row_blocks
        return [table]

    def _table_cells(self, row: dict[str, Any]) -> list[RichText]:
        return [
            self.render_inline(cell.get("children", []))
            for cell in row.get("children", [])
        ]

    def _image_block(self, token: dict[str, Any]) -> Block:
        url = token.get("attrs", {}).get("url", "")
        alt = self._plain_text(token)
        payload: dict[str, Any] = {"type": "external", "external": {"url": url}}
        if alt:
            payload["caption"] = self._text(alt)
        return make_block("image", **payload)

    @staticmethod
    def _attach_children(
        block: Block, children: list[Block], depth: int
    ) -> list[Block]:
        """Nest *children* under *block*, or hoist them to siblings when
        the nesting limit of one request is reached."""
        if not children:
            return [block]
        if depth < MAX_NESTING:
            block[block["type"]]["children"] = children
            return [block]
        return [block, *children]

    # ------------------------------------------------------------------
    # Inline level
    # ------------------------------------------------------------------

    def render_inline(
        self,
        tokens: list[dict[str, Any]],
        link: str | None = None,
        **annotations: bool,
    ) -> RichText:
        """Render inline tokens to Notion rich text, carrying the active
        link target and annotations down to nested spans."""
        items: RichText = []
        for token in tokens:
            token_type = token.get("type")
            children = token.get("children", [])

            if token_type == "text":
                items.append(text_item(token["raw"], link, **annotations))
            elif token_type == "codespan":
                items.append(
                    text_item(token["raw"], link, **{**annotations, "code": True})
                )
            elif token_type == "emphasis":
                items.extend(
                    self.render_inline(children, link, **{**annotations, "italic": True})
                )
            elif token_type == "strong":
                items.extend(
                    self.render_inline(children, link, **{**annotations, "bold": True})
                )
            elif token_type == "strikethrough":
                items.extend(
                    self.render_inline(
                        children, link, **{**annotations, "strikethrough": True}
                    )
                )
            elif token_type == "link":
                url = token.get("attrs", {}).get("url") or None
                items.extend(self.render_inline(children, url, **annotations))
            elif token_type == "image":
                # Inline images inside list items or headings keep their alt text
                alt = self._plain_text(token) or token.get("attrs", {}).get("url", "")
                items.append(text_item(alt, link, **annotations))
            elif token_type == "linebreak":
                items.append(text_item("\n", link, **annotations))
            elif token_type == "softbreak":
                items.append(text_item(" ", link, **annotations))
            elif token_type == "inline_html":
                items.append(text_item(token.get("raw", ""), link, **annotations))
            elif children:
                items.extend(self.render_inline(children, link, **annotations))
            elif token.get("raw"):
                items.append(text_item(token["raw"], link, **annotations))

        return split_rich_text(_merge_adjacent(items))

    def _text(self, content: str) -> RichText:
        return split_rich_text([text_item(content)])

    def _plain_text(self, token: dict[str, Any]) -> str:
        if "raw" in token and token.get("type") in ("text", "codespan"):
            return token["raw"]
        return "".join(self._plain_text(c) for c in token.get("children", []))


def _merge_adjacent(items: RichText) -> RichText:
    """Merge neighbouring text items that share link and annotations."""
    merged: RichText = []
    for item in items:
        if (
            merged
            and merged[-1].get("annotations") == item.get("annotations")
            and merged[-1]["text"].get("link") == item["text"].get("link")
        ):
            merged[-1]["text"]["content"] += item["text"]["content"]
        else:
            merged.append(item)
    return merged


def _trim_edges(items: RichText) -> RichText:
    """Strip whitespace from both ends of a rich text run."""
    items = [dict(item, text=dict(item["text"])) for item in items]
    while items and not items[0]["text"]["content"].strip():
        items.pop(0)
    while items and not items[-1]["text"]["content"].strip():
        items.pop()
    if items:
        items[0]["text"]["content"] = items[0]["text"]["content"].lstrip()
        items[-1]["text"]["content"] = items[-1]["text"]["content"].rstrip()
    return items


def markdown_to_blocks(markdown_text: str) -> list[Block]:
    """
    Convert Markdown text to a list of Notion block payloads.

    The same input always yields the same blocks.

    Args:
        markdown_text: Markdown formatted text

    Returns:
        Ordered list of Notion block dicts
    """
    renderer = NotionBlockRenderer()
    markdown = mistune.create_markdown(
        renderer=renderer,
        plugins=["table", "strikethrough", "task_lists"],
    )
    result: list[Block] = markdown(markdown_text)  # type: ignore[assignment]
    return result
