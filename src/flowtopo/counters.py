"""Attribution of the engine's flat status counters to topology nodes.

Rule status snapshots are flat: ``{"source_demo_0_records_in_total": 42,
"op_2_tumblingwindow_0_process_latency_us": 150, "status": "running", ...}``.
Two independent readings are offered. :func:`extract_node_metrics` picks the
counters that look like they belong to one node; :func:`compute_aggregate_metrics`
totals the whole snapshot using stricter prefix rules. The two may disagree
and are not reconciled.
"""
from __future__ import annotations
import logging
import math
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .classify import SINK_PREFIX, SOURCE_PREFIX
from .ir import AggregateMetrics, MetricsSnapshot, NodeMetrics

logger = logging.getLogger(__name__)

RECORDS_IN = "records_in_total"
RECORDS_OUT = "records_out_total"
LATENCY_US = "process_latency_us"
LATENCY_MS = "process_latency_ms"
EXCEPTIONS = "exceptions_total"

# (field, needles) in the order fields are checked for each attributed key
_FIELD_NEEDLES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("records_in", (RECORDS_IN,)),
    ("records_out", (RECORDS_OUT,)),
    ("latency_us", (LATENCY_US, LATENCY_MS)),
    ("exceptions", (EXCEPTIONS,)),
)


def is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def _numeric_items(metrics: Optional[MetricsSnapshot]) -> Iterator[Tuple[str, float]]:
    if not metrics or not hasattr(metrics, "items"):
        return
    for key, value in metrics.items():
        if isinstance(key, str) and is_number(value):
            yield key, value


def _as_count(value: float) -> int:
    return max(0, int(value))


def normalize_id(node_id: str) -> str:
    return node_id.lower().replace("-", "_")


def belongs_to(key: str, node_id: str) -> bool:
    """Whether a counter key looks like it was reported by ``node_id``.

    Plain prefix/substring matching: ``sink_log`` also claims the counters of
    ``sink_log_v2``.
    """
    nkey = key.lower()
    nid = normalize_id(node_id)
    return nkey.startswith(nid) or f"_{nid}_" in nkey


def extract_node_metrics(metrics: Optional[MetricsSnapshot], node_id: str) -> NodeMetrics:
    found: Dict[str, int] = {}
    for key, value in _numeric_items(metrics):
        if not belongs_to(key, node_id):
            continue
        lowered = key.lower()
        for field, needles in _FIELD_NEEDLES:
            if field not in found and any(n in lowered for n in needles):
                found[field] = _as_count(value)
        if len(found) == len(_FIELD_NEEDLES):
            break
    return NodeMetrics(**found)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5)) if math.isfinite(value) else 0


def _total(value: float) -> int:
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return int(value)


def compute_aggregate_metrics(metrics: Optional[MetricsSnapshot]) -> AggregateMetrics:
    records_in: float = 0
    records_out: float = 0
    exceptions: float = 0
    latencies: List[float] = []
    for key, value in _numeric_items(metrics):
        if RECORDS_IN in key and key.startswith(SOURCE_PREFIX):
            records_in += value
        if RECORDS_OUT in key and key.startswith(SINK_PREFIX):
            records_out += value
        if LATENCY_US in key:
            latencies.append(value)
        if EXCEPTIONS in key:
            exceptions += value
    mean = _round_half_up(sum(latencies) / len(latencies)) if latencies else 0
    logger.debug("aggregated %d latency samples", len(latencies))
    return AggregateMetrics(
        records_in=_total(records_in),
        records_out=_total(records_out),
        mean_latency_us=mean,
        exceptions=_total(exceptions),
    )


def rule_status(metrics: Optional[MetricsSnapshot]) -> str:
    """The rule's lifecycle state as reported in the snapshot, e.g. ``running``."""
    if not metrics or not hasattr(metrics, "get"):
        return "unknown"
    status = metrics.get("status")
    if isinstance(status, str) and status:
        return status
    return "unknown"
