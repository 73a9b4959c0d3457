"""Config file schema for notion_docs_sync.

Defines Pydantic models for the YAML config structure with dedicated
sections for the Notion connection, the sync pass, and logging.

Usage:
    from notion_docs_sync.config_schema import build_config, to_fallbacks

    raw = load_hierarchical_config()
    unified = build_config(raw)
    config = load_config(yaml_fallbacks=to_fallbacks(unified))
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class NotionConfig(BaseModel):
    """Notion connection settings.

    All fields are optional: env vars and CLI args can supply them at
    runtime instead.
    """

    token: str | None = Field(
        default=None, description="Notion integration token"
    )
    root_page: str | None = Field(
        default=None,
        description="Root page id or URL ending in -<page-id>",
    )

    model_config = {"frozen": True}


class SyncSettings(BaseModel):
    """Settings for a sync pass."""

    folder: str | None = Field(
        default=None, description="Local Markdown folder"
    )
    relative_urls_root: str | None = Field(
        default=None,
        description="Repository URL used to rewrite relative links",
    )
    workspace: str | None = Field(
        default=None,
        description="Checkout root for 'View this file in GitHub' links",
    )
    debug: bool | None = Field(default=None, description="Debug logging")
    ignore_create_errors: bool | None = Field(
        default=None,
        description="Tolerate content-append failures (default true)",
    )
    delete_orphans: bool | None = Field(
        default=None,
        description="Delete remote pages with no local document (default false)",
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
        format: ``text`` or ``json``.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")
    format: Literal["text", "json"] = Field(
        default="text", description="Log line format"
    )

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level config file model.

    Every section has defaults, so ``UnifiedConfig()`` (zero-config) is
    always valid.
    """

    notion: NotionConfig = Field(default_factory=NotionConfig)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the merged YAML dict.

    Missing sections get defaults.

    Raises:
        pydantic.ValidationError: If a section has the wrong shape.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


def to_fallbacks(unified: UnifiedConfig) -> dict:
    """Flatten the ``notion`` and ``sync`` sections into the fallback
    dict consumed by ``load_config()``, dropping unset values.
    """
    merged = {
        **unified.notion.model_dump(),
        **unified.sync.model_dump(),
    }
    return {k: v for k, v in merged.items() if v is not None}
