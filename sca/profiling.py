"""
Simple profiling utilities for the growth and relief stages.

Timing is off by default; the CLI switches it on with ``--profile`` and logs
the table once the pipeline has finished.
"""

import logging
import time
from collections import defaultdict
from functools import wraps
from typing import Dict

logger = logging.getLogger(__name__)


class Profiler:
    def __init__(self):
        self.stats: Dict[str, Dict] = defaultdict(lambda: {
            'calls': 0,
            'total_time': 0.0,
        })
        self.enabled = False

    def record(self, name: str, elapsed: float):
        if not self.enabled:
            return
        self.stats[name]['calls'] += 1
        self.stats[name]['total_time'] += elapsed

    def report(self) -> str:
        sorted_stats = sorted(
            self.stats.items(),
            key=lambda x: x[1]['total_time'],
            reverse=True
        )
        lines = [f"{'Phase':<40} {'Calls':>8} {'Total(s)':>10} {'Avg(ms)':>10}", "-" * 71]
        for name, data in sorted_stats:
            calls = data['calls']
            total = data['total_time']
            avg_ms = (total / calls * 1000) if calls > 0 else 0
            lines.append(f"{name:<40} {calls:>8} {total:>10.3f} {avg_ms:>10.3f}")
        return "\n".join(lines)

    def log_stats(self):
        if not self.stats:
            return
        logger.info("Profiling results:\n%s", self.report())

    def reset(self):
        self.stats.clear()


profiler = Profiler()


def profile(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        if not profiler.enabled:
            return func(*args, **kwargs)
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            profiler.record(func.__qualname__, time.perf_counter() - start)
    return wrapper


class profile_block:
    def __init__(self, name: str):
        self.name = name
        self.start = None

    def __enter__(self):
        self.start = time.perf_counter()
        return self

    def __exit__(self, *args):
        profiler.record(self.name, time.perf_counter() - self.start)
