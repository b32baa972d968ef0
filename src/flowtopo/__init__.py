from .counters import compute_aggregate_metrics, extract_node_metrics, rule_status
from .ir import (
    AggregateMetrics,
    Direction,
    EdgeColor,
    LayoutConfig,
    LayoutEdge,
    LayoutNode,
    NodeMetrics,
    NodeRole,
    Position,
    RenderGraph,
    TopologyDescriptor,
)
from .layout import compute_topology_layout

__all__ = [
    "AggregateMetrics",
    "Direction",
    "EdgeColor",
    "LayoutConfig",
    "LayoutEdge",
    "LayoutNode",
    "NodeMetrics",
    "NodeRole",
    "Position",
    "RenderGraph",
    "TopologyDescriptor",
    "compute_aggregate_metrics",
    "compute_topology_layout",
    "extract_node_metrics",
    "rule_status",
]
