"""Sankey graph aggregation for trace rows.

Folds a list of trace rows into a deduplicated node/link graph: one
node per distinct PLO, module, MIMLO and assessment label, one link per
distinct adjacent pair, weighted by the number of rows collapsing onto
it. Node indices follow first-seen order so repeated renders of the
same rows keep a stable layout.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from weave.src.models import TraceRow, TraceStatus


@dataclass
class SankeyPalette:
    """Colours used for Sankey nodes and links.

    Attributes:
        plo_node: Fill for PLO nodes.
        module_node: Fill for module nodes.
        status_nodes: Fill for MIMLO and assessment nodes, by row status.
        status_links: Fill for links, by the status of the first row.
        fallback_node: Fill for an unknown status.
        fallback_link: Link fill for an unknown status.
    """

    plo_node: str = "#0d6efd"
    module_node: str = "#6f42c1"
    status_nodes: dict[TraceStatus, str] = field(
        default_factory=lambda: {
            TraceStatus.OK: "#198754",
            TraceStatus.WARNING: "#ffc107",
            TraceStatus.GAP: "#dc3545",
            TraceStatus.UNCOVERED: "#212529",
        }
    )
    status_links: dict[TraceStatus, str] = field(
        default_factory=lambda: {
            TraceStatus.OK: "rgba(25, 135, 84, 0.4)",
            TraceStatus.WARNING: "rgba(255, 193, 7, 0.4)",
            TraceStatus.GAP: "rgba(220, 53, 69, 0.4)",
            TraceStatus.UNCOVERED: "rgba(33, 37, 41, 0.3)",
        }
    )
    fallback_node: str = "#6c757d"
    fallback_link: str = "rgba(108, 117, 125, 0.3)"

    def node_color(self, status: TraceStatus) -> str:
        return self.status_nodes.get(status, self.fallback_node)

    def link_color(self, status: TraceStatus) -> str:
        return self.status_links.get(status, self.fallback_link)


@dataclass
class SankeyLink:
    """An aggregated edge between two graph nodes.

    Attributes:
        source_index: Index of the source node.
        target_index: Index of the target node.
        weight: Number of trace rows collapsed onto this edge.
        color: Display colour, fixed by the first row that created it.
    """

    source_index: int
    target_index: int
    weight: int
    color: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "source_index": self.source_index,
            "target_index": self.target_index,
            "weight": self.weight,
            "color": self.color,
        }


@dataclass
class SankeyGraph:
    """Deduplicated node/link graph ready for a Sankey renderer.

    Attributes:
        node_labels: Unique, non-empty node labels in first-seen order.
        node_colors: Colours parallel to node_labels.
        links: Aggregated links in first-seen order.
    """

    node_labels: list[str] = field(default_factory=list)
    node_colors: list[str] = field(default_factory=list)
    links: list[SankeyLink] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.node_labels

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "node_labels": list(self.node_labels),
            "node_colors": list(self.node_colors),
            "links": [link.to_dict() for link in self.links],
        }

    def to_plotly(self, pad: int = 15, thickness: int = 20) -> dict[str, Any]:
        """Return the graph in the shape a Plotly sankey trace expects.

        Args:
            pad: Vertical gap between nodes, in pixels.
            thickness: Node bar thickness, in pixels.

        Returns:
            Dict with ``node`` and ``link`` sections.
        """
        return {
            "node": {
                "label": list(self.node_labels),
                "color": list(self.node_colors),
                "pad": pad,
                "thickness": thickness,
            },
            "link": {
                "source": [link.source_index for link in self.links],
                "target": [link.target_index for link in self.links],
                "value": [link.weight for link in self.links],
                "color": [link.color for link in self.links],
            },
        }


class _GraphBuilder:
    """Append-only node registry and link accumulator for one aggregation."""

    def __init__(self) -> None:
        self.graph = SankeyGraph()
        self._node_index: dict[str, int] = {}
        self._link_index: dict[tuple[int, int], SankeyLink] = {}

    def node(self, label: str, color: str) -> int:
        """Return the index for a label, creating the node on first sight.

        The colour is only set on creation.
        """
        idx = self._node_index.get(label)
        if idx is None:
            idx = len(self.graph.node_labels)
            self._node_index[label] = idx
            self.graph.node_labels.append(label)
            self.graph.node_colors.append(color)
        return idx

    def link(self, source: int, target: int, color: str) -> None:
        existing = self._link_index.get((source, target))
        if existing is not None:
            existing.weight += 1
            return
        link = SankeyLink(source_index=source, target_index=target, weight=1, color=color)
        self._link_index[(source, target)] = link
        self.graph.links.append(link)


class SankeyAggregator:
    """Folds trace rows into a SankeyGraph.

    Node creation is driven purely by which fields a row carries, never
    by its status: a row without a PLO contributes nothing, a row with a
    PLO but no module contributes one node and no links.

    Args:
        palette: Colour configuration.

    Example::

        graph = SankeyAggregator().aggregate(result.rows)
        figure_data = graph.to_plotly()
    """

    def __init__(self, palette: SankeyPalette | None = None) -> None:
        self._palette = palette or SankeyPalette()

    def aggregate(self, rows: Iterable[TraceRow]) -> SankeyGraph:
        """Aggregate rows into nodes and weighted links.

        Args:
            rows: Trace rows, in display order.

        Returns:
            SankeyGraph with first-seen node ordering.
        """
        builder = _GraphBuilder()
        palette = self._palette

        for row in rows:
            if not row.has_plo:
                continue
            link_color = palette.link_color(row.status)
            plo_idx = builder.node(f"PLO {row.plo_num}", palette.plo_node)

            if not row.has_module:
                continue
            module_idx = builder.node(row.module_code, palette.module_node)
            builder.link(plo_idx, module_idx, link_color)

            if not row.has_mimlo:
                continue
            mimlo_idx = builder.node(
                f"{row.module_code} MIMLO {row.mimlo_num}", palette.node_color(row.status)
            )
            builder.link(module_idx, mimlo_idx, link_color)

            if not row.has_assessment:
                continue
            assessment_idx = builder.node(
                f"{row.module_code}: {row.assessment_title}", palette.node_color(row.status)
            )
            builder.link(mimlo_idx, assessment_idx, link_color)

        return builder.graph
