"""
Benchmark runner.

Generates data, loads it into every design that does not hold it yet, runs
the scenario battery and returns everything as a BenchmarkRun. Nothing is
kept in module state.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from core.config import BenchmarkConfig, check_credentials, ensure_valid
from core.design import Design, InsertSummary, Measurement
from core.keys import EntityType
from utils.data_generator import (
    USER_STATUSES,
    DataGenerator,
    DataSet,
    email_for,
    iso_timestamp,
    supplier_id_for,
    user_id_for,
)


logger = logging.getLogger(__name__)

# Window used by the orders-by-date-range scenario
ORDER_RANGE_DAYS = 90


@dataclass
class BenchmarkRun:
    """Results of one benchmark invocation"""
    started_at: str
    region: str
    config: Dict[str, Any] = field(default_factory=dict)
    finished_at: Optional[str] = None
    report_only: bool = False
    dataset_counts: Dict[str, int] = field(default_factory=dict)
    measurements: List[Measurement] = field(default_factory=list)
    insert_summaries: List[InsertSummary] = field(default_factory=list)
    existing_data: List[str] = field(default_factory=list)

    @property
    def successful(self) -> List[Measurement]:
        return [m for m in self.measurements if m.success]

    @property
    def failed(self) -> List[Measurement]:
        return [m for m in self.measurements if not m.success]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'startedAt': self.started_at,
            'finishedAt': self.finished_at,
            'region': self.region,
            'reportOnly': self.report_only,
            'config': self.config,
            'datasetCounts': self.dataset_counts,
            'existingData': self.existing_data,
            'summary': {
                'totalTests': len(self.measurements),
                'successfulTests': len(self.successful),
                'failedTests': len(self.failed),
            },
            'results': [m.to_dict() for m in self.measurements],
            'insertSummaries': [s.to_dict() for s in self.insert_summaries],
        }


class BenchmarkRunner:
    """
    Run the scenario battery against a set of designs.

    Args:
        config: Benchmark configuration
        designs: Design instances to compare (usually relational + single table)
        generator: Data generator (default: seeded from config)
        session: boto3 session used for the credential check
    """

    def __init__(
        self,
        config: BenchmarkConfig,
        designs: List[Design],
        generator: Optional[DataGenerator] = None,
        session=None,
    ):
        self.config = config
        self.designs = designs
        self.generator = generator or DataGenerator(seed=config.seed)
        self.session = session

    def verify(self):
        """
        Validate settings and credentials before anything is measured.

        Raises:
            ConfigurationError: On invalid settings or missing credentials
        """
        ensure_valid(self.config)
        check_credentials(self.config, self.session)
        print("✅ Configuration and credentials verified")

    def test_user_ids(self) -> List[str]:
        count = min(self.config.test_user_count, self.config.user_count)
        return [user_id_for(i) for i in range(1, count + 1)]

    def order_date_range(self) -> Tuple[str, str]:
        end = self.generator.reference_time
        start = end - timedelta(days=ORDER_RANGE_DAYS)
        return iso_timestamp(start), iso_timestamp(end)

    def log_table_counts(self):
        print("\n📊 Current table counts (DescribeTable, refreshed periodically by DynamoDB):")
        for design in self.designs:
            design.log_table_item_counts()

    def has_data(self, design: Design) -> bool:
        """
        Check whether a design already holds the generated data set.

        Generation is deterministic, so the first user being readable means
        a previous run loaded this design.
        """
        measurement = design.get_user(user_id_for(1))
        if not measurement.success:
            logger.warning(f"Existing data check failed for {design.design_type.value}: {measurement.error}")
            return False
        return measurement.item_count > 0

    def designs_needing_data(self) -> List[Design]:
        pending = []
        for design in self.designs:
            if self.has_data(design):
                print(f"  ⏭️  {design.design_type.value} design already has data, skipping insertion")
            else:
                pending.append(design)
        return pending

    def insert_data(self, dataset: DataSet, designs: Optional[List[Design]] = None) -> List[InsertSummary]:
        summaries = []
        for design in self.designs if designs is None else designs:
            print(f"\n💾 Loading data into {design.design_type.value} design...")
            design_summaries = design.insert_dataset(dataset)
            for summary in design_summaries:
                status = "✅" if summary.inserted == summary.requested else "⚠️ "
                print(
                    f"  {status} {summary.table_name}: {summary.inserted:,}/{summary.requested:,} inserted "
                    f"({summary.unprocessed} unprocessed, {summary.failed} failed)"
                )
            summaries.extend(design_summaries)
        return summaries

    def run_scenarios(self, design: Design, user_id: str) -> List[Measurement]:
        """Run every read scenario for one user on one design."""
        start_date, end_date = self.order_date_range()
        return [
            design.get_user(user_id),
            design.get_children(user_id, EntityType.POST),
            design.get_children(user_id, EntityType.ORDER),
            design.get_all_of_type(EntityType.POST),
            design.get_user_screen_data(user_id),
            design.get_comments_on_user_posts(user_id),
            design.get_orders_by_date_range(start_date, end_date),
            design.get_users_by_status(USER_STATUSES[0]),
            design.get_users_by_email(email_for(1)),
            design.get_user_order_items(user_id),
            design.get_order_items_by_supplier(supplier_id_for(1), start_date, end_date),
        ]

    def run(self, report_only: bool = False, skip_data_insertion: bool = False) -> BenchmarkRun:
        """
        Execute a full benchmark.

        Designs that already hold the data set (from an earlier run) are not
        written again; clear them first to reload.

        Args:
            report_only: Measure existing data only (no generation or insertion)
            skip_data_insertion: Generate data but do not write it

        Returns:
            BenchmarkRun with every measurement and insert summary
        """
        self.verify()

        run = BenchmarkRun(
            started_at=datetime.now(timezone.utc).isoformat(),
            region=self.config.region,
            config=self.config.to_dict(),
            report_only=report_only,
        )

        if report_only:
            print("\n📊 Report-only mode: measuring existing data")
        else:
            self.log_table_counts()

            if skip_data_insertion:
                pending = []
            else:
                print("\n🔍 Checking for existing data...")
                pending = self.designs_needing_data()
                run.existing_data = [d.design_type.value for d in self.designs if d not in pending]

            if skip_data_insertion or pending:
                print("\n🎲 Generating test data...")
                dataset = self.generator.generate_from_config(self.config)
                run.dataset_counts = dataset.counts()
                print(f"  ✅ Generated {dataset.total:,} entities: {run.dataset_counts}")

            if skip_data_insertion:
                print("\n⏭️  Skipping data insertion")
            elif pending:
                run.insert_summaries = self.insert_data(dataset, pending)
            else:
                print("\n⏭️  Every design already has data, nothing to insert")

        user_ids = self.test_user_ids()
        print(f"\n🚀 Running {self.config.iterations} iteration(s) for {len(user_ids)} test user(s)...")

        for iteration in range(1, self.config.iterations + 1):
            for design in self.designs:
                for user_id in user_ids:
                    logger.info(f"Iteration {iteration}: {design.design_type.value} scenarios for {user_id}")
                    run.measurements.extend(self.run_scenarios(design, user_id))

        run.finished_at = datetime.now(timezone.utc).isoformat()

        failures = len(run.failed)
        if failures:
            print(f"\n⚠️  {failures} of {len(run.measurements)} measurements failed")
        else:
            print(f"\n✅ {len(run.measurements)} measurements completed")

        return run

    def clear_all_data(self) -> int:
        """Purge every table of every design."""
        ensure_valid(self.config)
        total = 0
        for design in self.designs:
            print(f"\n🗑️  Clearing {design.design_type.value} tables...")
            total += design.clear_all_data()
        print(f"\n✅ Deleted {total:,} items")
        return total
