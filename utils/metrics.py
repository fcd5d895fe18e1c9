"""
Performance metrics collection and analysis utilities.
"""
import time
from typing import Dict, List

import numpy as np


PERCENTILES = (50, 90, 95, 99)


def latency_stats(latencies: List[float]) -> Dict[str, float]:
    """
    Summary statistics for a list of latencies in milliseconds.

    Returns:
        Dictionary with min/max/mean/std and p50/p90/p95/p99
    """
    if not latencies:
        return {}

    latencies_array = np.array(latencies, dtype=float)
    stats = {
        'min': float(np.min(latencies_array)),
        'max': float(np.max(latencies_array)),
        'mean': float(np.mean(latencies_array)),
        'std': float(np.std(latencies_array)),
    }
    for percentile in PERCENTILES:
        stats[f'p{percentile}'] = float(np.percentile(latencies_array, percentile))
    return stats


class PerformanceMetrics:
    """Collect and analyze measurements of one scenario on one design."""

    def __init__(self, name: str, design: str):
        """
        Initialize metrics collector.

        Args:
            name: Scenario name (measurement test_name)
            design: Design label
        """
        self.name = name
        self.design = design
        self.latencies = []
        self.errors = []
        self.item_counts = []
        self.scanned_counts = []
        self.request_counts = []
        self.total_rcu = 0.0
        self.total_wcu = 0.0
        self.total_cost = 0.0
        self.used_index = False

    def record(self, measurement):
        """Record a measurement; failures only count as errors."""
        if not measurement.success:
            self.errors.append(measurement.error)
            return

        self.latencies.append(measurement.duration_ms)
        self.item_counts.append(measurement.item_count)
        self.scanned_counts.append(measurement.scanned_count)
        self.request_counts.append(measurement.request_count)
        self.total_rcu += measurement.rcu_consumed
        self.total_wcu += measurement.wcu_consumed
        self.total_cost += measurement.estimated_cost
        self.used_index = self.used_index or measurement.used_index

    def get_summary(self) -> Dict:
        """
        Get summary statistics.

        Returns:
            Dictionary with performance metrics
        """
        summary = {
            'name': self.name,
            'design': self.design,
            'runs': len(self.latencies) + len(self.errors),
            'successes': len(self.latencies),
            'failures': len(self.errors),
        }

        if not self.latencies:
            summary['error'] = 'No successful measurements'
            return summary

        summary.update({
            'latency_ms': latency_stats(self.latencies),
            'mean_items': float(np.mean(self.item_counts)),
            'mean_scanned': float(np.mean(self.scanned_counts)),
            'mean_requests': float(np.mean(self.request_counts)),
            'total_rcu': self.total_rcu,
            'total_wcu': self.total_wcu,
            'estimated_cost': self.total_cost,
            'used_index': self.used_index,
        })
        return summary


class Timer:
    """Context manager for timing operations."""

    def __init__(self):
        self.start_time = None
        self.end_time = None
        self.elapsed_ms = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args):
        self.end_time = time.perf_counter()
        self.elapsed_ms = (self.end_time - self.start_time) * 1000  # Convert to ms

    def get_elapsed_ms(self) -> float:
        """Get elapsed time in milliseconds."""
        return self.elapsed_ms
