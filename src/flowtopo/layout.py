from __future__ import annotations
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .classify import classify_node, humanize_label
from .counters import extract_node_metrics, rule_status
from .ir import (
    PLACEHOLDER_ID,
    PLACEHOLDER_LABEL,
    Direction,
    EdgeColor,
    LayoutConfig,
    LayoutEdge,
    LayoutNode,
    MetricsSnapshot,
    NodeMetrics,
    NodeRole,
    Position,
    RenderGraph,
    TopologyDescriptor,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_POSITION = Position(x=200, y=100)


def discover_nodes(topology: TopologyDescriptor) -> List[str]:
    """Every node named anywhere in the descriptor, once, in first-seen order."""
    seen: Dict[str, None] = {}
    for name in topology.sources:
        seen.setdefault(name, None)
    for frm, targets in topology.edges.items():
        seen.setdefault(frm, None)
        for to in targets:
            seen.setdefault(to, None)
    return list(seen)


def assign_levels(
    nodes: Sequence[str], sources: Sequence[str], edges: Mapping[str, Sequence[str]]
) -> Dict[str, int]:
    """Depth of each node by repeated relaxation along the edges.

    At most ``len(nodes)`` passes are made, so cyclic input terminates with
    approximate levels for the nodes on the cycle. Nodes never reached stay at 0.
    """
    levels: Dict[str, int] = {s: 0 for s in sources}
    passes = 0
    changed = True
    while changed and passes < len(nodes):
        changed = False
        passes += 1
        for frm, targets in edges.items():
            base = levels.get(frm, 0)
            for to in targets:
                current = levels.get(to)
                if current is None or current <= base:
                    levels[to] = base + 1
                    changed = True
    if changed and nodes:
        logger.debug("level relaxation stopped at %d passes; topology has a cycle", passes)
    return {n: levels.get(n, 0) for n in nodes}


def node_caption(role: NodeRole, m: NodeMetrics) -> str:
    if role is NodeRole.SOURCE:
        return f"{m.records_in} in / {m.records_out} out"
    if role is NodeRole.SINK:
        return f"{m.records_out} out"
    return f"{m.records_in} in / {m.latency_us}μs"


def grid_position(level: int, index: int, config: LayoutConfig) -> Position:
    if config.direction is Direction.LR:
        return Position(
            x=config.origin_x + level * config.column_spacing,
            y=config.origin_y + index * config.row_spacing,
        )
    return Position(
        x=config.origin_x + index * config.column_spacing,
        y=config.origin_y + level * config.row_spacing,
    )


def edge_color(from_role: NodeRole, to_role: NodeRole) -> EdgeColor:
    if from_role is NodeRole.SOURCE:
        return EdgeColor.FROM_SOURCE
    if to_role is NodeRole.SINK:
        return EdgeColor.TO_SINK
    return EdgeColor.DEFAULT


def placeholder_node() -> LayoutNode:
    return LayoutNode(
        id=PLACEHOLDER_ID,
        role=NodeRole.OPERATOR,
        level=0,
        label=PLACEHOLDER_LABEL,
        position=PLACEHOLDER_POSITION,
        placeholder=True,
    )


def build_render_graph(
    topology: TopologyDescriptor,
    metrics: Optional[MetricsSnapshot] = None,
    config: Optional[LayoutConfig] = None,
) -> RenderGraph:
    config = config or LayoutConfig()
    status = rule_status(metrics)
    names = discover_nodes(topology)
    if not names:
        logger.debug("empty topology; emitting placeholder node")
        return RenderGraph(nodes=[placeholder_node()], edges=[], status=status)

    edges = topology.edges
    emitters = frozenset(topology.emitters)
    roles = {n: classify_node(n, emitters) for n in names}
    levels = assign_levels(names, topology.sources, edges)

    # level groups keep the order in which each level is first met
    groups: Dict[int, List[str]] = {}
    for name in names:
        groups.setdefault(levels[name], []).append(name)

    nodes: List[LayoutNode] = []
    for level, members in groups.items():
        for index, name in enumerate(members):
            node_metrics = extract_node_metrics(metrics, name)
            nodes.append(
                LayoutNode(
                    id=name,
                    role=roles[name],
                    level=level,
                    label=humanize_label(name),
                    position=grid_position(level, index, config),
                    metrics=node_metrics,
                    caption=node_caption(roles[name], node_metrics),
                )
            )

    layout_edges: List[LayoutEdge] = []
    for frm, targets in edges.items():
        for i, to in enumerate(targets):
            layout_edges.append(
                LayoutEdge(
                    id=f"edge-{frm}-{to}-{i}",
                    source=frm,
                    target=to,
                    color_class=edge_color(roles[frm], roles[to]),
                )
            )

    logger.debug("laid out %d nodes and %d edges", len(nodes), len(layout_edges))
    return RenderGraph(nodes=nodes, edges=layout_edges, status=status)


def compute_topology_layout(
    topology: Any,
    metrics: Optional[MetricsSnapshot] = None,
    config: Optional[LayoutConfig] = None,
) -> RenderGraph:
    """Classified, labelled, positioned and metric-annotated graph for a rule topology.

    ``topology`` may be a :class:`TopologyDescriptor` or the engine's raw
    ``{"sources": [...], "edges": {...}}`` payload. Malformed parts are
    ignored rather than reported.
    """
    return build_render_graph(TopologyDescriptor.from_payload(topology), metrics, config)


def level_groups(graph: RenderGraph) -> List[Tuple[int, List[LayoutNode]]]:
    out: Dict[int, List[LayoutNode]] = {}
    for node in graph.nodes:
        out.setdefault(node.level, []).append(node)
    return sorted(out.items())
