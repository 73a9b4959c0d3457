"""File reading for the document loader: encoding-aware reads and discovery."""

from pathlib import Path

from charset_normalizer import from_bytes

_MARKDOWN_SUFFIX = ".md"


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read a Markdown file, preferring UTF-8.

    Bytes that decode as UTF-8 are always read as UTF-8 (a leading BOM is
    dropped).  Only undecodable input goes through charset-normalizer,
    whose guesses are unreliable on short files.

    Args:
        path: Path to the file to read.

    Returns:
        Tuple of (content_string, encoding_used).
    """
    raw = path.read_bytes()
    try:
        return (raw.decode("utf-8-sig"), "utf-8")
    except UnicodeDecodeError:
        pass

    result = from_bytes(raw).best()
    if result is None:
        return (raw.decode("utf-8", errors="replace"), "utf-8")
    return (str(result), result.encoding)


def find_markdown_files(
    root: Path, ignore_dirs: frozenset[str] = frozenset({"node_modules"})
) -> list[Path]:
    """Recursively list Markdown files under *root* in sorted path order.

    The ``.md`` extension is matched case-insensitively.  Files under a
    directory named in *ignore_dirs* are skipped.
    """
    found: list[Path] = []
    for path in sorted(root.rglob("*")):
        if path.suffix.lower() != _MARKDOWN_SUFFIX or not path.is_file():
            continue
        rel_parts = path.relative_to(root).parts[:-1]
        if any(part in ignore_dirs for part in rel_parts):
            continue
        found.append(path)
    return found
