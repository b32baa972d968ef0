from __future__ import annotations
import networkx as nx

from .ir import RenderGraph
from .layout import level_groups


def to_networkx(graph: RenderGraph) -> nx.MultiDiGraph:
    nxg = nx.MultiDiGraph()
    for n in graph.nodes:
        nxg.add_node(n.id, role=n.role.value, label=n.label, level=n.level)
    for e in graph.edges:
        nxg.add_edge(e.source, e.target, key=e.id, color=e.color_class.value)
    return nxg


def ascii_plan(graph: RenderGraph) -> str:
    if graph.is_placeholder:
        return "# Topology Plan\n(no topology data)"
    nxg = to_networkx(graph)
    lines = [f"# Topology Plan (status: {graph.status})"]
    for level, nodes in level_groups(graph):
        lines.append(f"L{level}:")
        for node in nodes:
            lines.append(f"  {node.label} [{node.role.value}] <{node.id}>  {node.caption}")
            for _, succ, color in nxg.out_edges(node.id, data="color"):
                lines.append(f"    └─▶ {nxg.nodes[succ]['label']} <{succ}>  ({color})")
    return "\n".join(lines)
