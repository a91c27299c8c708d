# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Rich rendering of resource index summaries."""

from __future__ import annotations

from dataclasses import dataclass

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .index import ResourceIndex
from .sources import RootId


@dataclass(frozen=True, slots=True)
class RootSummary:
    """Resource count contributed by one root."""

    root: RootId
    resource_count: int


@dataclass(frozen=True, slots=True)
class IndexSummary:
    """Aggregated figures describing a resource index."""

    roots: tuple[RootSummary, ...]
    resource_count: int
    distinct_names: int

    @property
    def shadowed_names(self) -> int:
        """Return how many resources share their name with an earlier one."""

        return self.resource_count - self.distinct_names


def summarize_index(index: ResourceIndex) -> IndexSummary:
    """Collect the figures displayed by :func:`create_index_panel`.

    Args:
        index: Index to summarise.

    Returns:
        IndexSummary: Per-root counts in precedence order and totals.
    """

    roots = tuple(RootSummary(root=root, resource_count=len(index.in_root(root))) for root in index.roots)
    distinct = len({descriptor.name for descriptor in index})
    return IndexSummary(roots=roots, resource_count=len(index), distinct_names=distinct)


def create_index_panel(summary: IndexSummary, *, color: bool = True) -> Panel:
    """Create a Rich panel listing the roots of an index.

    Args:
        summary: Summary produced by :func:`summarize_index`.
        color: Whether to apply colour styles.

    Returns:
        Panel: Panel containing one row per root and a totals row.
    """

    label_style = "cyan" if color else None
    value_style = "orange1" if color else None
    table = Table(box=box.SIMPLE_HEAVY if color else box.SIMPLE, pad_edge=False, expand=False)
    table.add_column("#", justify="right", no_wrap=True)
    table.add_column("Kind", style=label_style, no_wrap=True)
    table.add_column("Location", overflow="fold")
    table.add_column("Resources", style=value_style, justify="right", no_wrap=True)
    for position, entry in enumerate(summary.roots, start=1):
        table.add_row(str(position), str(entry.root.kind), entry.root.location, f"{entry.resource_count:,}")
    table.add_section()
    table.add_row("", Text("total", style=label_style or ""), "", f"{summary.resource_count:,}")
    table.add_row("", Text("shadowed", style=label_style or ""), "", f"{summary.shadowed_names:,}")
    title = "[yellow]resource index[/yellow]" if color else "resource index"
    return Panel.fit(table, title=title, border_style="yellow" if color else "none")


def render_index(index: ResourceIndex, *, console: Console | None = None, color: bool = True) -> None:
    """Print a summary panel for ``index``.

    Args:
        index: Index to describe.
        console: Console receiving the output; a default console when omitted.
        color: Whether to apply colour styles.
    """

    target = console or Console()
    target.print(create_index_panel(summarize_index(index), color=color))


__all__ = ["IndexSummary", "RootSummary", "create_index_panel", "render_index", "summarize_index"]
