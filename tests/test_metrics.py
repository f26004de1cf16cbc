from __future__ import annotations

import time

from metrics import REGISTRY, LatencySummary, MetricsRegistry, record_call


def test_metrics_registry_renders_prometheus():
    registry = MetricsRegistry()
    registry.counter("test_counter").inc()
    registry.summary("test_latency").observe(10)
    registry.summary("test_latency").observe(30)
    output = registry.render_prometheus()
    assert "test_counter 1" in output
    assert "test_latency_count 2" in output
    assert "test_latency_sum 40.0" in output
    assert "test_latency_avg 20.0" in output
    assert "test_latency_max 30" in output


def test_summary_keeps_only_aggregates():
    summary = LatencySummary()
    for value in range(10_000):
        summary.observe(float(value))

    assert summary.count == 10_000
    assert summary.max == 9999.0
    # Только скаляры: память не растет с числом вызовов.
    assert all(isinstance(value, (int, float)) for value in vars(summary).values())


def test_record_call_counts_failures_separately():
    calls = REGISTRY.counter("agent_metrics_test_calls").value
    failures = REGISTRY.counter("agent_metrics_test_failures").value
    observed = REGISTRY.summary("agent_metrics_test_latency_ms").count

    record_call("metrics_test", time.perf_counter(), success=True)
    latency = record_call("metrics_test", time.perf_counter(), success=False)

    assert latency >= 0
    assert REGISTRY.counter("agent_metrics_test_calls").value == calls + 2
    assert REGISTRY.counter("agent_metrics_test_failures").value == failures + 1
    assert REGISTRY.summary("agent_metrics_test_latency_ms").count == observed + 2
    assert "agent_metrics_test_latency_ms_count" in REGISTRY.render_prometheus()
