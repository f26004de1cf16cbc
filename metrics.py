from __future__ import annotations

import time
from typing import Dict, List


class Counter:
    def __init__(self) -> None:
        self.value = 0

    def inc(self, by: int = 1) -> None:
        self.value += by


class LatencySummary:
    """Задержки вызовов агента: храним только агрегаты, а не каждое значение."""

    def __init__(self) -> None:
        self.count = 0
        self.total = 0.0
        self.max = 0.0

    def observe(self, value: float) -> None:
        self.count += 1
        self.total += value
        self.max = max(self.max, value)

    def avg(self) -> float:
        if not self.count:
            return 0.0
        return self.total / self.count


class MetricsRegistry:
    def __init__(self) -> None:
        self.counters: Dict[str, Counter] = {}
        self.summaries: Dict[str, LatencySummary] = {}

    def counter(self, name: str) -> Counter:
        return self.counters.setdefault(name, Counter())

    def summary(self, name: str) -> LatencySummary:
        return self.summaries.setdefault(name, LatencySummary())

    def render_prometheus(self) -> str:
        lines: List[str] = []
        for name, counter in self.counters.items():
            lines.append(f"# TYPE {name} counter")
            lines.append(f"{name} {counter.value}")
        for name, summary in self.summaries.items():
            lines.append(f"# TYPE {name} summary")
            lines.append(f"{name}_count {summary.count}")
            lines.append(f"{name}_sum {summary.total}")
            lines.append(f"# TYPE {name}_avg gauge")
            lines.append(f"{name}_avg {summary.avg()}")
            lines.append(f"# TYPE {name}_max gauge")
            lines.append(f"{name}_max {summary.max}")
        return "\n".join(lines) + "\n"


REGISTRY = MetricsRegistry()


def record_call(capability: str, started_at: float, success: bool) -> float:
    """Обновляет счетчики вызова агента и возвращает задержку в мс."""
    latency_ms = (time.perf_counter() - started_at) * 1000
    REGISTRY.counter(f"agent_{capability}_calls").inc()
    if not success:
        REGISTRY.counter(f"agent_{capability}_failures").inc()
    REGISTRY.summary(f"agent_{capability}_latency_ms").observe(latency_ms)
    return latency_ms
