"""Tests for the in-process metrics collector."""

from todo_agent.infrastructure.observability.logging import MetricsCollector


def test_latency_stats_stay_fixed_size():
    collector = MetricsCollector()
    for i in range(10000):
        collector.record_latency("agent_stream", float(i % 100))

    assert collector.latencies["agent_stream"] == {
        "count": 10000,
        "sum": 495000.0,
        "min": 0.0,
        "max": 99.0,
    }
    summary = collector.get_metrics_summary()
    assert summary["latency.agent_stream"] == {"count": 10000, "avg": 49.5, "min": 0.0, "max": 99.0}


def test_counters_and_reset():
    collector = MetricsCollector()
    collector.increment_counter("events.text")
    collector.increment_counter("tokens.input", 12)
    collector.record_latency("agent_stream", 5.0)
    assert collector.get_metrics_summary() == {
        "events.text": 1,
        "tokens.input": 12,
        "latency.agent_stream": {"count": 1, "avg": 5.0, "min": 5.0, "max": 5.0},
    }

    collector.reset()
    assert collector.get_metrics_summary() == {}
