"""
Report generation for a benchmark run.

Aggregates measurements per scenario and design, compares the designs and
writes results.md, test-results.json and an optional latency chart.
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from core.design import DesignType
from utils.cost_tracker import summarize_costs
from utils.metrics import PerformanceMetrics


logger = logging.getLogger(__name__)

MARKDOWN_FILE = "results.md"
JSON_FILE = "test-results.json"
CHART_FILE = "latency-comparison.png"

RELATIONAL = DesignType.RELATIONAL.value
SINGLE_TABLE = DesignType.SINGLE_TABLE.value
DESIGN_COLORS = {RELATIONAL: "#87CEEB", SINGLE_TABLE: "#FFA500"}


def measurements_frame(measurements: List[Any]) -> pd.DataFrame:
    """One row per measurement (Measurement.to_dict columns)."""
    return pd.DataFrame([m.to_dict() for m in measurements])


def percent_change(baseline: float, value: float) -> Optional[float]:
    if not baseline:
        return None
    return (value - baseline) / baseline * 100


def _assessment(change: Optional[float]) -> str:
    if change is None:
        return "n/a"
    if abs(change) < 5:
        return "≈ Similar"
    if change < 0:
        return "✅ Single table faster"
    return "⚠️ Relational faster"


def _ms(value: Optional[float]) -> str:
    return "n/a" if value is None else f"{value:.2f}ms"


def markdown_table(frame: pd.DataFrame) -> str:
    """Render a DataFrame as a GitHub markdown table."""
    if frame.empty:
        return "_No data_\n"

    header = "| " + " | ".join(str(column) for column in frame.columns) + " |"
    separator = "|" + "|".join("---" for _ in frame.columns) + "|"
    rows = ["| " + " | ".join(str(value) for value in row) + " |" for row in frame.itertuples(index=False)]
    return "\n".join([header, separator] + rows) + "\n"


class BenchmarkReport:
    """
    Comparison report for a BenchmarkRun.

    Args:
        run: BenchmarkRun from the runner
    """

    def __init__(self, run):
        self.run = run
        self.frame = measurements_frame(run.measurements)
        self.metrics = self._collect_metrics()

    def _collect_metrics(self) -> Dict[tuple, PerformanceMetrics]:
        metrics = {}
        for measurement in self.run.measurements:
            key = (measurement.test_name, measurement.design.value)
            if key not in metrics:
                metrics[key] = PerformanceMetrics(*key)
            metrics[key].record(measurement)
        return metrics

    def scenario_summary(self) -> pd.DataFrame:
        """Per scenario and design statistics."""
        rows = []
        for metrics in self.metrics.values():
            summary = metrics.get_summary()
            latency = summary.get('latency_ms', {})
            rows.append({
                'Scenario': summary['name'],
                'Design': summary['design'],
                'Runs': summary['runs'],
                'Successes': summary['successes'],
                'Failures': summary['failures'],
                'Mean (ms)': latency.get('mean', np.nan),
                'P50 (ms)': latency.get('p50', np.nan),
                'P90 (ms)': latency.get('p90', np.nan),
                'P95 (ms)': latency.get('p95', np.nan),
                'P99 (ms)': latency.get('p99', np.nan),
                'Items': summary.get('mean_items', np.nan),
                'Scanned': summary.get('mean_scanned', np.nan),
                'Requests': summary.get('mean_requests', np.nan),
                'RCU': summary.get('total_rcu', 0.0),
                'Cost ($)': summary.get('estimated_cost', 0.0),
                'Index': summary.get('used_index', False),
            })
        return pd.DataFrame(rows)

    def comparison(self) -> pd.DataFrame:
        """Relational vs single table, one row per scenario present in both."""
        summary = self.scenario_summary()
        if summary.empty:
            return pd.DataFrame()

        pivot = summary.pivot_table(index='Scenario', columns='Design', values=['Mean (ms)', 'RCU', 'Scanned'], sort=False)

        rows = []
        for scenario in pivot.index:
            try:
                relational_ms = pivot.loc[scenario, ('Mean (ms)', RELATIONAL)]
                single_ms = pivot.loc[scenario, ('Mean (ms)', SINGLE_TABLE)]
            except KeyError:
                continue
            if pd.isna(relational_ms) or pd.isna(single_ms):
                continue

            change = percent_change(relational_ms, single_ms)
            rows.append({
                'Scenario': scenario,
                'Relational (ms)': round(relational_ms, 2),
                'Single Table (ms)': round(single_ms, 2),
                'Difference (ms)': round(single_ms - relational_ms, 2),
                'Change': f"{change:+.1f}%" if change is not None else "n/a",
                'Relational RCU': round(pivot.loc[scenario, ('RCU', RELATIONAL)], 2),
                'Single Table RCU': round(pivot.loc[scenario, ('RCU', SINGLE_TABLE)], 2),
                'Relational Scanned': round(pivot.loc[scenario, ('Scanned', RELATIONAL)], 1),
                'Single Table Scanned': round(pivot.loc[scenario, ('Scanned', SINGLE_TABLE)], 1),
                'Assessment': _assessment(change),
            })
        return pd.DataFrame(rows)

    def overall_summary(self) -> Dict[str, Any]:
        """Fastest/slowest request, index vs no-index and design averages."""
        overview = {
            'totalTests': len(self.run.measurements),
            'successfulTests': len(self.run.successful),
            'failedTests': len(self.run.failed),
        }

        frame = self.frame
        if frame.empty or not frame['success'].any():
            return overview

        ok = frame[frame['success']]
        fastest = ok.loc[ok['durationMs'].idxmin()]
        slowest = ok.loc[ok['durationMs'].idxmax()]
        overview['fastest'] = {'testName': fastest['testName'], 'design': fastest['design'], 'durationMs': float(fastest['durationMs'])}
        overview['slowest'] = {'testName': slowest['testName'], 'design': slowest['design'], 'durationMs': float(slowest['durationMs'])}

        by_index = ok.groupby('usedIndex')['durationMs'].mean()
        # None rather than NaN when one side has no measurements, so the JSON stays valid
        overview['withIndexAvgMs'] = float(by_index[True]) if True in by_index.index else None
        overview['withoutIndexAvgMs'] = float(by_index[False]) if False in by_index.index else None

        by_design = ok.groupby('design')['durationMs'].mean()
        relational = by_design.get(RELATIONAL)
        single = by_design.get(SINGLE_TABLE)
        overview['designAvgMs'] = {design: float(value) for design, value in by_design.items()}
        if relational is not None and single is not None:
            overview['latencyImprovementPct'] = percent_change(relational, single)

        return overview

    def insert_summary(self) -> pd.DataFrame:
        rows = [
            {
                'Design': summary.measurement.design.value,
                'Table': summary.table_name,
                'Requested': summary.requested,
                'Inserted': summary.inserted,
                'Unprocessed': summary.unprocessed,
                'Failed': summary.failed,
                'WCU': round(summary.measurement.wcu_consumed, 2),
            }
            for summary in self.run.insert_summaries
        ]
        return pd.DataFrame(rows)

    def cost_summary(self) -> pd.DataFrame:
        rows = []
        for design in DesignType:
            reads = [m for m in self.run.measurements if m.design == design and m.success]
            writes = [s.measurement for s in self.run.insert_summaries if s.measurement.design == design]
            measurements = reads + writes
            if not measurements:
                continue
            cost = summarize_costs(design.value, reads, writes, region=self.run.region)
            rows.append({
                'Design': design.value,
                'Total RCU': round(sum(m.rcu_consumed for m in measurements), 2),
                'Total WCU': round(sum(m.wcu_consumed for m in measurements), 2),
                'Estimated Cost ($)': f"{cost.get_total():.8f}",
            })
        return pd.DataFrame(rows)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def to_markdown(self) -> str:
        overview = self.overall_summary()
        summary = self.scenario_summary().round(2)

        lines = [
            "# DynamoDB Design Comparison Results",
            "",
            "## Test Summary",
            f"- **Total Tests**: {overview['totalTests']}",
            f"- **Successful Tests**: {overview['successfulTests']}",
            f"- **Failed Tests**: {overview['failedTests']}",
            f"- **AWS Region**: {self.run.region}",
            f"- **Started**: {self.run.started_at}",
            f"- **Finished**: {self.run.finished_at}",
            f"- **Mode**: {'report only' if self.run.report_only else 'generate + insert + measure'}",
        ]
        if self.run.existing_data:
            lines.append(f"- **Already loaded (not inserted)**: {', '.join(self.run.existing_data)}")
        lines.append("")

        if 'fastest' in overview:
            fastest, slowest = overview['fastest'], overview['slowest']
            lines += [
                "## Overall",
                f"- **Fastest request**: {fastest['testName']} ({fastest['design']}) {fastest['durationMs']:.2f}ms",
                f"- **Slowest request**: {slowest['testName']} ({slowest['design']}) {slowest['durationMs']:.2f}ms",
                f"- **Average with index**: {_ms(overview['withIndexAvgMs'])}",
                f"- **Average without index**: {_ms(overview['withoutIndexAvgMs'])}",
            ]
            improvement = overview.get('latencyImprovementPct')
            if improvement is not None:
                lines.append(f"- **Single table vs relational latency**: {improvement:+.1f}%")
            lines.append("")

        lines += ["## Design Comparison", "", markdown_table(self.comparison())]
        lines += ["## Scenario Statistics", "", markdown_table(summary)]

        inserts = self.insert_summary()
        if not inserts.empty:
            lines += ["## Data Insertion", "", markdown_table(inserts)]

        lines += ["## Cost Estimate", "", "On-demand pricing: $0.25 per million RRU, $1.25 per million WRU.", ""]
        lines += [markdown_table(self.cost_summary())]

        failed = self.run.failed
        if failed:
            lines += ["## Failures", ""]
            lines += [f"- {m.test_name} ({m.design.value}): {m.error}" for m in failed]
            lines.append("")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        data = self.run.to_dict()
        data['overall'] = self.overall_summary()
        data['scenarios'] = json.loads(self.scenario_summary().to_json(orient='records'))
        return data

    def save_latency_chart(self, path: str) -> Optional[str]:
        """Grouped bar chart of mean latency per scenario and design."""
        summary = self.scenario_summary()
        if summary.empty:
            return None
        summary = summary.dropna(subset=['Mean (ms)'])
        if summary.empty:
            return None

        sns.set_style("whitegrid")
        fig, ax = plt.subplots(figsize=(12, 6))
        sns.barplot(
            data=summary,
            x='Scenario',
            y='Mean (ms)',
            hue='Design',
            palette=DESIGN_COLORS,
            errorbar=None,
            edgecolor='black',
            linewidth=0.5,
            ax=ax,
        )
        ax.set_xlabel('Scenario', fontsize=12, fontweight='bold')
        ax.set_ylabel('Mean latency (ms)', fontsize=12, fontweight='bold')
        ax.set_title('Relational vs Single Table: Mean Latency', fontsize=14, fontweight='bold', pad=15)
        ax.set_axisbelow(True)
        plt.setp(ax.get_xticklabels(), rotation=30, ha='right')

        plt.tight_layout()
        fig.savefig(path, dpi=150, bbox_inches='tight')
        plt.close(fig)
        return path

    def write(self, output_dir: str, chart: bool = False) -> Dict[str, str]:
        """
        Write the report files.

        Returns:
            Mapping of artifact name to written path
        """
        os.makedirs(output_dir, exist_ok=True)
        paths = {
            'markdown': os.path.join(output_dir, MARKDOWN_FILE),
            'json': os.path.join(output_dir, JSON_FILE),
        }

        with open(paths['markdown'], 'w') as f:
            f.write(self.to_markdown())

        with open(paths['json'], 'w') as f:
            json.dump(self.to_dict(), f, indent=2, default=str, allow_nan=False)

        if chart:
            chart_path = self.save_latency_chart(os.path.join(output_dir, CHART_FILE))
            if chart_path:
                paths['chart'] = chart_path

        for name, path in paths.items():
            print(f"💾 {name}: {path}")
        return paths

    def print_summary(self):
        """Print the comparison table to the console."""
        print("\n" + "=" * 100)
        print("📊 DESIGN COMPARISON")
        print("=" * 100)

        comparison = self.comparison()
        if comparison.empty:
            print("No scenario was measured successfully on both designs")
        else:
            print(comparison.to_string(index=False))

        overview = self.overall_summary()
        print(f"\nTests: {overview['totalTests']} total, {overview['successfulTests']} successful, {overview['failedTests']} failed")
        improvement = overview.get('latencyImprovementPct')
        if improvement is not None:
            print(f"Single table vs relational latency: {improvement:+.1f}%")
        print("=" * 100)
