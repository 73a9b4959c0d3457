"""Sync report formatting functions.

- ``format_sync_report`` -- full post-sync summary.
- ``format_dry_run_preview`` -- planned work-lists of a dry run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ItemResult, SyncReport

# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def _section(lines: list[str], heading: str, results: list[ItemResult]) -> None:
    if not results:
        return
    lines.append(heading)
    for r in results:
        line = f"  {r.title}"
        if r.page_id:
            line += f" ({r.page_id})"
        if r.error:
            line += f": {r.error}"
        lines.append(line)
    lines.append("")


def format_sync_report(report: SyncReport) -> str:
    """Format a complete sync report as human-readable text.

    Sections are only included when they contain at least one result.
    Unchanged pages are summarised by count only.

    Args:
        report: The completed sync report.

    Returns:
        Multi-line formatted string.
    """
    if report.dry_run:
        return format_dry_run_preview(report)

    lines: list[str] = []

    lines.append(f"Sync report for root page {report.root_page_id}")
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    lines.append(
        f"Synced {len(report.results)} pages: "
        f"{len(report.created)} created, "
        f"{len(report.updated)} updated, "
        f"{len(report.deleted)} deleted, "
        f"{len(report.errors)} errors"
    )
    lines.append("")

    _section(lines, "Created:", report.created)
    _section(lines, "Updated:", report.updated)
    _section(lines, "Deleted:", report.deleted)
    _section(lines, "Content append failed (ignored):", report.tolerated)
    _section(lines, "Skipped (page not found):", report.skipped)
    _section(
        lines,
        "Orphans kept (deletion disabled):",
        report.deletions_disabled,
    )
    _section(lines, "Errors:", report.errors)

    unchanged = len(report.unchanged)
    if unchanged > 0:
        lines.append(f"Unchanged: {unchanged} pages")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Dry-run preview
# ------------------------------------------------------------------


def format_dry_run_preview(report: SyncReport) -> str:
    """Format the planned work-lists of a dry run.

    Update items are listed as candidates: whether their content changed
    is only known once their blocks are listed.
    """
    planned = report.planned
    lines: list[str] = []
    lines.append("DRY RUN -- No changes will be made")
    lines.append(f"Root page: {report.root_page_id}")
    lines.append("")

    if planned.to_create:
        lines.append("[CREATE]")
        for item in planned.to_create:
            lines.append(f"  {item.document.path} -> {item.title}")
        lines.append("")

    if planned.to_update:
        lines.append("[UPDATE IF CHANGED]")
        for item in planned.to_update:
            lines.append(
                f"  {item.document.path} -> {item.title} ({item.remote_id})"
            )
        lines.append("")

    if planned.to_delete:
        lines.append("[DELETE]")
        for item in planned.to_delete:
            lines.append(f"  {item.title} ({item.remote_id})")
        lines.append("")

    if not (planned.to_create or planned.to_update or planned.to_delete):
        lines.append("No changes needed.")
        lines.append("")

    return "\n".join(lines).rstrip()
