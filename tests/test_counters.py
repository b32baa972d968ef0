from flowtopo.counters import (
    belongs_to,
    compute_aggregate_metrics,
    extract_node_metrics,
    rule_status,
)
from flowtopo.ir import AggregateMetrics, NodeMetrics

SNAPSHOT = {
    "status": "running",
    "source_demo_0_records_in_total": 42,
    "sink_log_0_0_records_out_total": 40,
    "sink_log_0_0_process_latency_us": 150,
}


def test_extract_node_metrics():
    assert extract_node_metrics(SNAPSHOT, "source_demo").records_in == 42
    m = extract_node_metrics(SNAPSHOT, "sink_log")
    assert m.records_out == 40
    assert m.latency_us == 150


def test_no_matching_counters_is_all_zero():
    assert extract_node_metrics(SNAPSHOT, "op_2_filter") == NodeMetrics()
    assert extract_node_metrics({}, "x") == NodeMetrics()
    assert extract_node_metrics(None, "x") == NodeMetrics()


def test_first_matching_key_wins():
    snap = {
        "op_1_records_in_total": 10,
        "rule_op_1_records_in_total": 99,
    }
    assert extract_node_metrics(snap, "op_1").records_in == 10


def test_embedded_id_surrounded_by_underscores():
    snap = {"rule1_op_2_filter_0_exceptions_total": 3}
    assert extract_node_metrics(snap, "op_2_filter").exceptions == 3


def test_id_is_normalized():
    snap = {"my_stream_0_records_in_total": 7}
    assert extract_node_metrics(snap, "My-Stream").records_in == 7


def test_latency_in_milliseconds_key_is_accepted():
    snap = {"op_3_join_0_process_latency_ms": 4}
    assert extract_node_metrics(snap, "op_3_join").latency_us == 4


def test_non_numeric_values_are_ignored():
    snap = {
        "op_1_records_in_total": "12",
        "op_1_records_out_total": True,
        "op_1_exceptions_total": float("nan"),
        "op_1_process_latency_us": 8.9,
    }
    m = extract_node_metrics(snap, "op_1")
    assert m == NodeMetrics(latency_us=8)


def test_negative_counter_clamps_to_zero():
    assert extract_node_metrics({"op_1_records_in_total": -5}, "op_1").records_in == 0


def test_prefix_ambiguity_between_similar_ids():
    # sink_log is a prefix of sink_log_v2: whichever key is iterated first is taken
    snap = {
        "sink_log_v2_0_records_out_total": 5,
        "sink_log_0_records_out_total": 40,
    }
    assert belongs_to("sink_log_v2_0_records_out_total", "sink_log")
    assert extract_node_metrics(snap, "sink_log").records_out == 5
    assert extract_node_metrics(snap, "sink_log_v2").records_out == 5


def test_aggregate_metrics():
    agg = compute_aggregate_metrics(SNAPSHOT)
    assert agg == AggregateMetrics(records_in=42, records_out=40, mean_latency_us=150, exceptions=0)


def test_aggregate_uses_strict_prefixes():
    snap = {
        "source_a_0_records_in_total": 10,
        "source_b_0_records_in_total": 5,
        "op_2_filter_0_records_in_total": 100,
        "sink_x_0_records_out_total": 7,
        "op_2_filter_0_records_out_total": 100,
        "op_2_filter_0_exceptions_total": 2,
        "sink_x_0_exceptions_total": 1,
    }
    agg = compute_aggregate_metrics(snap)
    assert agg.records_in == 15
    assert agg.records_out == 7
    assert agg.exceptions == 3


def test_mean_latency_rounds_half_up():
    snap = {"a_process_latency_us": 1, "b_process_latency_us": 2}
    assert compute_aggregate_metrics(snap).mean_latency_us == 2
    # milliseconds keys do not take part in the mean
    snap["c_process_latency_ms"] = 1000
    assert compute_aggregate_metrics(snap).mean_latency_us == 2


def test_aggregate_of_empty_snapshot():
    assert compute_aggregate_metrics({}) == AggregateMetrics()
    assert compute_aggregate_metrics(None) == AggregateMetrics()


def test_rule_status():
    assert rule_status(SNAPSHOT) == "running"
    assert rule_status({"status": 1}) == "unknown"
    assert rule_status({}) == "unknown"
    assert rule_status(None) == "unknown"
