"""Shared helpers for building Notion block payloads."""

from typing import Any

# Notion rejects rich text objects whose content exceeds 2000 characters
MAX_TEXT_LENGTH = 2000

# =============================================================================
# Code Block Language Mapping
# =============================================================================
#
# Markdown code fence identifiers -> Notion code block languages.
# Notion accepts a closed set of names; anything unknown becomes
# "plain text" rather than failing the whole append request.
# =============================================================================

_MARKDOWN_TO_NOTION_MAP: dict[str, str] = {
    "sh": "shell",
    "zsh": "shell",
    "console": "shell",
    "js": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "py": "python",
    "rb": "ruby",
    "yml": "yaml",
    "cs": "c#",
    "csharp": "c#",
    "cpp": "c++",
    "fsharp": "f#",
    "dockerfile": "docker",
    "golang": "go",
    "kt": "kotlin",
    "md": "markdown",
    "ps1": "powershell",
    "proto": "protobuf",
    "text": "plain text",
    "txt": "plain text",
    "plaintext": "plain text",
    "plain": "plain text",
}

_NOTION_LANGUAGES: frozenset[str] = frozenset(
    {
        "abap", "arduino", "bash", "basic", "c", "clojure", "coffeescript",
        "c++", "c#", "css", "dart", "diff", "docker", "elixir", "elm",
        "erlang", "flow", "fortran", "f#", "gherkin", "glsl", "go",
        "graphql", "groovy", "haskell", "html", "java", "javascript",
        "json", "julia", "kotlin", "latex", "less", "lisp", "livescript",
        "lua", "makefile", "markdown", "markup", "matlab", "mermaid",
        "nix", "objective-c", "ocaml", "pascal", "perl", "php",
        "plain text", "powershell", "prolog", "protobuf", "python", "r",
        "reason", "ruby", "rust", "sass", "scala", "scheme", "scss",
        "shell", "sql", "swift", "typescript", "vb.net", "verilog",
        "vhdl", "visual basic", "webassembly", "xml", "yaml",
    }
)


def markdown_to_notion_lang(lang: str | None) -> str:
    """
    Convert a Markdown code fence language to a Notion code language.

    Examples:
        >>> markdown_to_notion_lang("py")
        'python'
        >>> markdown_to_notion_lang("Rust")
        'rust'
        >>> markdown_to_notion_lang("brainfuck")
        'plain text'
    """
    if not lang:
        return "plain text"
    lang_lower = lang.strip().split()[0].lower() if lang.strip() else ""
    lang_lower = _MARKDOWN_TO_NOTION_MAP.get(lang_lower, lang_lower)
    if lang_lower in _NOTION_LANGUAGES:
        return lang_lower
    return "plain text"


def text_item(
    content: str,
    link: str | None = None,
    **annotations: Any,
) -> dict[str, Any]:
    """Build one rich text object. Annotations are only set when truthy."""
    item: dict[str, Any] = {
        "type": "text",
        "text": {"content": content},
    }
    if link:
        item["text"]["link"] = {"url": link}
    active = {k: v for k, v in annotations.items() if v}
    if active:
        item["annotations"] = active
    return item


def split_rich_text(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Split text items longer than ``MAX_TEXT_LENGTH`` into several items."""
    result: list[dict[str, Any]] = []
    for item in items:
        content = item["text"]["content"]
        if len(content) <= MAX_TEXT_LENGTH:
            result.append(item)
            continue
        for start in range(0, len(content), MAX_TEXT_LENGTH):
            piece = {**item, "text": {**item["text"]}}
            piece["text"]["content"] = content[start : start + MAX_TEXT_LENGTH]
            result.append(piece)
    return result


def make_block(block_type: str, **payload: Any) -> dict[str, Any]:
    """Build a block dict in Notion's ``{"type": t, t: {...}}`` shape."""
    return {"object": "block", "type": block_type, block_type: payload}


def paragraph_block(
    rich_text: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    return make_block("paragraph", rich_text=rich_text or [])


def divider_block() -> dict[str, Any]:
    return make_block("divider")
