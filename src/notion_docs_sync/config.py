"""Runtime configuration for a sync pass.

Reads settings from CLI args, environment variables, .env files, and
YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    FOLDER: Local folder holding the Markdown documents (required)
    NOTION_TOKEN: Notion integration token (required)
    NOTION_ROOT_PAGE_ID: Root page id or URL ending in "-<page-id>" (required)
    RELATIVE_URLS_ROOT: Repository URL used to rewrite relative links (required)
    DEBUG: Enable debug logging (optional, default: false)
    IGNORE_CREATE_ERRORS: Tolerate content-append failures (optional, default: true)
    DELETE_ORPHANS: Delete remote pages with no local document (optional, default: false)
    GITHUB_WORKSPACE: Checkout root used for "View in GitHub" links (optional)
"""

import logging
import os
import re
from dataclasses import dataclass
from urllib.parse import urlparse

from .errors import ConfigError

logger = logging.getLogger(__name__)

# 32 hex digits, or the dashed 8-4-4-4-12 UUID form, alone or after a "-"
_PAGE_ID_PATTERN = re.compile(
    r"(?:^|-)([0-9a-fA-F]{32}|[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}"
    r"-[0-9a-fA-F]{4}-[0-9a-fA-F]{12})$"
)


@dataclass
class Config:
    folder: str
    notion_token: str
    root_page_id: str
    relative_urls_root: str
    workspace: str | None = None
    debug: bool = False
    ignore_create_errors: bool = True
    delete_orphans: bool = False


def parse_root_page_id(raw: str) -> str:
    """Extract the page id from a bare id or a Notion page URL.

    Notion page URLs end in ``<slug>-<page id>``, optionally followed
    by a query string.  The id is 32 hex digits or a dashed UUID;
    everything before it is discarded.

    Args:
        raw: Page id or page URL.

    Returns:
        The page id.

    Raises:
        ConfigError: If the value does not end with ``-<page-id>``.
    """
    value = raw.strip().split("?", 1)[0].split("#", 1)[0].rstrip("/")
    match = _PAGE_ID_PATTERN.search(value)
    if match:
        return match.group(1)

    raise ConfigError(
        f"Provided page '{raw}' was not in a valid format, "
        'url must end with "-<page-id>"'
    )


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ConfigError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ConfigError: If the URL root is malformed or a value is empty.
    """
    config.relative_urls_root = config.relative_urls_root.strip()

    if not config.relative_urls_root.startswith(("http://", "https://")):
        raise ConfigError(
            f"Invalid RELATIVE_URLS_ROOT '{config.relative_urls_root}': "
            "must start with http:// or https://"
        )

    parsed = urlparse(config.relative_urls_root)
    if not parsed.hostname:
        raise ConfigError(
            f"Invalid RELATIVE_URLS_ROOT '{config.relative_urls_root}': "
            "URL must include a hostname"
        )

    config.relative_urls_root = config.relative_urls_root.removesuffix("/")

    if not config.folder.strip():
        raise ConfigError("FOLDER cannot be empty.")

    if not config.notion_token.strip():
        raise ConfigError("NOTION_TOKEN cannot be empty.")

    if not config.ignore_create_errors:
        logger.debug("Append failures are fatal for this pass")


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.strip().lower() in ("true", "1", "yes", "on")


def _resolve_bool(
    cli_value: bool, env_key: str, fallback: object, default: bool
) -> bool:
    """CLI flag (only when set) > env var > YAML fallback > default."""
    if cli_value:
        return True
    env_value = _get_bool_env(env_key)
    if env_value is not None:
        return env_value
    if fallback is not None:
        return bool(fallback)
    return default


def _require(value: str | None, env_key: str) -> str:
    if not value or not value.strip():
        raise ConfigError(f"{env_key} not provided")
    return value.strip()


def load_config(
    folder: str | None = None,
    token: str | None = None,
    root_page: str | None = None,
    urls_root: str | None = None,
    debug: bool = False,
    strict: bool = False,
    delete_orphans: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        folder: Override source folder.
        token: Override Notion token.
        root_page: Override root page id or URL.
        urls_root: Override the relative URL root.
        debug: Enable debug logging (CLI flag).
        strict: Treat content-append failures as fatal (CLI flag).
        delete_orphans: Delete remote pages with no local document (CLI flag).
        yaml_fallbacks: Flat dict of values from the YAML config file.

    Returns:
        Validated Config instance.

    Raises:
        ConfigError: If a required setting is missing or malformed.
    """
    fb = yaml_fallbacks or {}

    final_folder = _require(
        folder or os.getenv("FOLDER") or fb.get("folder"), "FOLDER"
    )
    final_token = _require(
        token or os.getenv("NOTION_TOKEN") or fb.get("token"),
        "NOTION_TOKEN",
    )
    raw_root = _require(
        root_page
        or os.getenv("NOTION_ROOT_PAGE_ID")
        or fb.get("root_page"),
        "NOTION_ROOT_PAGE_ID",
    )
    final_urls_root = _require(
        urls_root
        or os.getenv("RELATIVE_URLS_ROOT")
        or fb.get("relative_urls_root"),
        "RELATIVE_URLS_ROOT",
    )
    workspace = os.getenv("GITHUB_WORKSPACE") or fb.get("workspace")

    # --strict only ever tightens the policy
    if strict:
        final_ignore = False
    else:
        final_ignore = _resolve_bool(
            False,
            "IGNORE_CREATE_ERRORS",
            fb.get("ignore_create_errors"),
            True,
        )

    config = Config(
        folder=final_folder,
        notion_token=final_token,
        root_page_id=parse_root_page_id(raw_root),
        relative_urls_root=final_urls_root,
        workspace=workspace or None,
        debug=_resolve_bool(debug, "DEBUG", fb.get("debug"), False),
        ignore_create_errors=final_ignore,
        delete_orphans=_resolve_bool(
            delete_orphans,
            "DELETE_ORPHANS",
            fb.get("delete_orphans"),
            False,
        ),
    )

    validate_config(config)

    return config
