from __future__ import annotations
from enum import Enum
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, field_validator, model_validator

MetricsSnapshot = Mapping[str, Any]

PLACEHOLDER_ID = "no-data"
PLACEHOLDER_LABEL = "No topology data"


class NodeRole(str, Enum):
    SOURCE = "source"
    OPERATOR = "operator"
    SINK = "sink"


class EdgeColor(str, Enum):
    FROM_SOURCE = "from_source"
    TO_SINK = "to_sink"
    DEFAULT = "default"


class Direction(str, Enum):
    TB = "TB"  # levels grow downwards
    LR = "LR"  # levels grow to the right


ROLE_COLORS: Dict[NodeRole, str] = {
    NodeRole.SOURCE: "#22c55e",
    NodeRole.OPERATOR: "#3b82f6",
    NodeRole.SINK: "#9333ea",
}

EDGE_STROKES: Dict[EdgeColor, str] = {
    EdgeColor.FROM_SOURCE: "#22c55e",
    EdgeColor.TO_SINK: "#9333ea",
    EdgeColor.DEFAULT: "#3b82f6",
}


def _js_truthy(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return bool(value)
    if isinstance(value, (int, float)):
        return value == value and value != 0
    if isinstance(value, str):
        return value != ""
    return True


class TopologyDescriptor(BaseModel):
    """Engine-reported shape of a running rule: root names plus adjacency.

    ``emitters`` holds the adjacency keys whose reported value was set (a list,
    even an empty one, or any other non-null value); a ``null`` value still
    names the node but does not count as having outgoing edges.
    """

    model_config = ConfigDict(frozen=True)

    sources: List[str] = Field(default_factory=list)
    edges: Dict[str, List[str]] = Field(default_factory=dict)
    emitters: List[str] = Field(default_factory=list, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def collect_emitters(cls, data: Any) -> Any:
        if not isinstance(data, Mapping) or "emitters" in data:
            return data
        raw = data.get("edges")
        emitters: List[str] = []
        if isinstance(raw, Mapping):
            emitters = [k for k, v in raw.items() if isinstance(k, str) and _js_truthy(v)]
        return {**data, "emitters": emitters}

    @field_validator("sources", mode="before")
    @classmethod
    def coerce_sources(cls, value: Any) -> List[str]:
        if not isinstance(value, (list, tuple)):
            return []
        return [v for v in value if isinstance(v, str)]

    @field_validator("edges", mode="before")
    @classmethod
    def coerce_edges(cls, value: Any) -> Dict[str, List[str]]:
        if not isinstance(value, Mapping):
            return {}
        out: Dict[str, List[str]] = {}
        for frm, targets in value.items():
            if not isinstance(frm, str):
                continue
            # non-list adjacency values still name the node but carry no edges
            if not isinstance(targets, (list, tuple)):
                out[frm] = []
                continue
            out[frm] = [t for t in targets if isinstance(t, str)]
        return out

    @classmethod
    def from_payload(cls, payload: Any) -> "TopologyDescriptor":
        if isinstance(payload, cls):
            return payload
        if not isinstance(payload, Mapping):
            return cls()
        return cls.model_validate(
            {"sources": payload.get("sources"), "edges": payload.get("edges")}
        )


class NodeMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    records_in: NonNegativeInt = 0
    records_out: NonNegativeInt = 0
    latency_us: NonNegativeInt = 0
    exceptions: NonNegativeInt = 0


class AggregateMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    records_in: int = 0
    records_out: int = 0
    mean_latency_us: int = 0
    exceptions: int = 0


class Position(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: int
    y: int


class LayoutNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    role: NodeRole
    level: NonNegativeInt
    label: str
    position: Position
    metrics: NodeMetrics = Field(default_factory=NodeMetrics)
    caption: str = ""
    placeholder: bool = False

    @property
    def color(self) -> str:
        return ROLE_COLORS[self.role]


class LayoutEdge(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    source: str
    target: str
    color_class: EdgeColor

    @property
    def stroke(self) -> str:
        return EDGE_STROKES[self.color_class]


class RenderGraph(BaseModel):
    model_config = ConfigDict(frozen=True)

    nodes: List[LayoutNode]
    edges: List[LayoutEdge] = Field(default_factory=list)
    status: str = "unknown"

    def node_map(self) -> Dict[str, LayoutNode]:
        return {n.id: n for n in self.nodes}

    @property
    def is_placeholder(self) -> bool:
        return len(self.nodes) == 1 and self.nodes[0].placeholder and not self.edges


class LayoutConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    origin_x: int = 50
    origin_y: int = 50
    column_spacing: int = 200
    row_spacing: int = 100
    direction: Direction = Direction.TB

