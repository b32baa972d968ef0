import pytest

from flowtopo.classify import classify_node, clean_name, humanize_label
from flowtopo.ir import NodeRole


@pytest.mark.parametrize("name,edges,role", [
    ("source_demo_0", {}, NodeRole.SOURCE),
    ("sink_log_0_0", {}, NodeRole.SINK),
    ("having_1", {"having_1": ["sink_log_0_0"]}, NodeRole.OPERATOR),
    ("mqtt_out", {}, NodeRole.SINK),
    ("mqtt_out", {"mqtt_out": ["x"]}, NodeRole.OPERATOR),
    ("op_2_project", {}, NodeRole.OPERATOR),
])
def test_classify_node(name, edges, role):
    assert classify_node(name, edges) is role


def test_source_prefix_wins_over_keywords():
    # "log" keyword, no outgoing edges, but the marker prefix decides first
    assert classify_node("source_logs", {}) is NodeRole.SOURCE


def test_clean_name():
    assert clean_name("op_2_tumblingwindow_0") == "tumblingwindow"
    assert clean_name("sink_mqtt_0_0") == "mqtt"
    assert clean_name("SOURCE_demo") == "demo"
    assert clean_name("my_custom_stream") == "my_custom_stream"


def test_stacked_markers_are_all_stripped():
    assert clean_name("op_sink_custom") == "custom"
    assert humanize_label("op_sink_custom") == "Custom"
    assert humanize_label("source_op_sink_2_orders_stream_0") == "Order By"
    # markers only strip in source, op, sink order
    assert clean_name("sink_op_custom") == "op_custom"


@pytest.mark.parametrize("name,label", [
    ("op_2_tumblingwindow_0", "Tumbling Window"),
    ("op_3_slidingwindow_0", "Sliding Window"),
    ("op_3_window_0", "Time Window"),
    ("sink_mqtt_0_0", "MQTT Output"),
    ("sink_log_0_0", "Log Output"),
    ("op_4_having", "Filter (HAVING)"),
    ("op_2_decompress", "Decompress"),
    ("op_5_project", "Select Fields"),
    ("my_custom_stream", "My Custom Stream"),
    ("source_demo", "Demo"),
])
def test_humanize_label(name, label):
    assert humanize_label(name) == label


def test_sink_table_checked_before_operators():
    # "log" inside an operator name still reads as a sink
    assert humanize_label("op_2_logfilter") == "Log Output"


def test_empty_cleaned_name_falls_back_to_raw_id():
    assert humanize_label("op_") == "op_"
    assert humanize_label("sink__0") == "sink__0"
