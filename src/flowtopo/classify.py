from __future__ import annotations
import re
from typing import Callable, Container, Tuple

from .ir import NodeRole

SOURCE_PREFIX = "source_"
OPERATOR_PREFIX = "op_"
SINK_PREFIX = "sink_"

# Output technologies; a node whose name mentions one and has no outgoing edges is a sink.
SINK_KEYWORDS: Tuple[str, ...] = (
    "log", "mqtt", "rest", "kafka", "file", "memory", "influx", "redis", "sql",
)

# Ordered (needle, label) tables: first substring hit wins.
SINK_LABELS: Tuple[Tuple[str, str], ...] = (
    ("log", "Log Output"),
    ("mqtt", "MQTT Output"),
    ("rest", "REST API"),
    ("kafka", "Kafka Output"),
    ("file", "File Output"),
    ("memory", "Memory Output"),
    ("influx", "InfluxDB"),
    ("redis", "Redis Output"),
    ("sql", "Database"),
    ("nop", "No-Op"),
    ("out", "Output"),
)

OPERATOR_LABELS: Tuple[Tuple[str, str], ...] = (
    ("decoder", "Decode"),
    ("decode", "Decode"),
    ("tumblingwindow", "Tumbling Window"),
    ("slidingwindow", "Sliding Window"),
    ("sessionwindow", "Session Window"),
    ("countwindow", "Count Window"),
    ("window", "Time Window"),
    ("having", "Filter (HAVING)"),
    ("filter", "Filter"),
    ("where", "Filter (WHERE)"),
    ("project", "Select Fields"),
    ("select", "Select Fields"),
    ("join", "Join"),
    ("aggregate", "Aggregate"),
    ("agg", "Aggregate"),
    ("groupby", "Group By"),
    ("orderby", "Order By"),
    ("order", "Order By"),
    ("transform", "Transform"),
    ("encode", "Encode"),
    ("decompress", "Decompress"),
    ("compress", "Compress"),
    ("pick", "Pick Fields"),
    ("unnest", "Unnest"),
    ("watermark", "Watermark"),
    ("switchnode", "Switch"),
    ("switch", "Switch"),
)

# applied one after another, so stacked markers ("op_sink_x") are all removed
_POSITIONAL_PREFIXES = tuple(
    re.compile(p, re.IGNORECASE) for p in (r"^source_", r"^op_", r"^sink_")
)
_INSTANCE_SUFFIX = re.compile(r"_\d+(?:_\d+)*$")
_ORDINAL_PREFIX = re.compile(r"^\d+_")
_WORD_START = re.compile(r"\b\w")

RoleRule = Tuple[Callable[[str, Container[str]], bool], NodeRole]


def _mentions_output_tech(name: str, emitters: Container[str]) -> bool:
    lowered = name.lower()
    return any(k in lowered for k in SINK_KEYWORDS) and name not in emitters


ROLE_RULES: Tuple[RoleRule, ...] = (
    (lambda name, _emitters: name.startswith(SOURCE_PREFIX), NodeRole.SOURCE),
    (lambda name, _emitters: name.startswith(SINK_PREFIX), NodeRole.SINK),
    (_mentions_output_tech, NodeRole.SINK),
)


def classify_node(name: str, emitters: Container[str]) -> NodeRole:
    """Best-effort role from the engine's naming conventions.

    ``emitters`` holds the names that have outgoing edges; an adjacency
    mapping works as well.
    """
    for predicate, role in ROLE_RULES:
        if predicate(name, emitters):
            return role
    return NodeRole.OPERATOR


def clean_name(name: str) -> str:
    """Strip positional markers, instance suffixes (``_0_1``) and ordinals (``2_``)."""
    cleaned = name
    for prefix in _POSITIONAL_PREFIXES:
        cleaned = prefix.sub("", cleaned, count=1)
    cleaned = _INSTANCE_SUFFIX.sub("", cleaned)
    return _ORDINAL_PREFIX.sub("", cleaned, count=1)


def _title(text: str) -> str:
    return _WORD_START.sub(lambda m: m.group(0).upper(), text.replace("_", " ")).strip()


def humanize_label(name: str) -> str:
    cleaned = clean_name(name)
    lowered = cleaned.lower()
    for table in (SINK_LABELS, OPERATOR_LABELS):
        for needle, label in table:
            if needle in lowered:
                return label
    return _title(cleaned) or name
