#!/usr/bin/env python3
"""
DynamoDB Design Benchmark - CLI Tool

Compares a relational (one table per entity) and a single-table DynamoDB
design on the same synthetic social data:
- Create the tables for both designs
- Generate and load users, posts, comments, followers, likes and orders
- Run the same access patterns against both designs
- Write a comparison report (results.md, test-results.json, optional chart)

Usage Examples:
    # Show configuration
    python run_benchmark.py --show-config

    # Create tables and run the full benchmark
    python run_benchmark.py --setup-tables --users 10 --orders 200 --seed 42

    # Measure existing data only
    python run_benchmark.py --report-only --test-user-count 5 --iterations 3

    # Purge every table
    python run_benchmark.py --clear-all-data
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import boto3

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from core.config import BenchmarkConfig, ConfigurationError, ensure_valid, load_config, print_config
from core.design import DesignFactory
from core.runner import BenchmarkRunner
from core.schema import create_tables, describe_tables, print_table_descriptions
from designs import RelationalDesign, SingleTableDesign  # noqa: F401  (registers designs)
from utils.report import BenchmarkReport


logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    for noisy in ('botocore', 'boto3', 'urllib3', 'matplotlib'):
        logging.getLogger(noisy).setLevel(logging.WARNING)


class BenchmarkCLI:
    """Main CLI handler for the design benchmark"""

    def __init__(self, config: BenchmarkConfig):
        self.config = config
        self._resource = None

    @property
    def resource(self):
        if self._resource is None:
            self._resource = boto3.resource(
                'dynamodb',
                region_name=self.config.region,
                endpoint_url=self.config.endpoint_url,
            )
        return self._resource

    def designs(self) -> List:
        return [
            DesignFactory.create(design_type, self.config, resource=self.resource)
            for design_type in DesignFactory.list_designs()
        ]

    def show_configuration(self):
        """Show current configuration"""
        print_config(self.config)
        issues = self.config.validate()
        if issues:
            print("\n⚠️  Configuration issues:")
            for issue in issues:
                print(f"   - {issue}")
        else:
            print("\n✅ Configuration valid")

    def setup_tables(self):
        """Create any missing table for both designs"""
        ensure_valid(self.config)
        print("\n" + "=" * 80)
        print("Creating DynamoDB Tables")
        print("=" * 80)

        created = create_tables(self.resource.meta.client, self.config)
        if created:
            print(f"\n✅ Created {len(created)} table(s): {', '.join(created)}")
        else:
            print("\n✅ All tables already exist")

    def describe(self):
        print_table_descriptions(describe_tables(self.resource.meta.client, self.config))

    def clear_all_data(self):
        print("\n" + "=" * 80)
        print("🗑️  CLEARING ALL BENCHMARK DATA")
        print("=" * 80)
        BenchmarkRunner(self.config, self.designs()).clear_all_data()

    def run_benchmarks(self, report_only: bool = False, skip_data_insertion: bool = False, chart: bool = False):
        """Run the benchmark and write the report"""
        print("\n" + "=" * 80)
        print("🚀 DYNAMODB DESIGN BENCHMARK")
        print("=" * 80)
        print(f"Region: {self.config.region}")
        print(f"Test users: {self.config.test_user_count}")
        print(f"Iterations: {self.config.iterations}")
        print("=" * 80)

        runner = BenchmarkRunner(self.config, self.designs())
        run = runner.run(report_only=report_only, skip_data_insertion=skip_data_insertion)

        report = BenchmarkReport(run)
        report.print_summary()
        report.write(self.config.output_dir, chart=chart)
        return run


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Relational vs single-table DynamoDB design benchmark",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show configuration
  python run_benchmark.py --show-config

  # Create tables, load data and measure
  python run_benchmark.py --setup-tables --users 10 --posts 50 --orders 200

  # Measure existing data only
  python run_benchmark.py --report-only

  # Purge all tables
  python run_benchmark.py --clear-all-data

Settings can also come from environment variables or a .env file
(see .env.example).
        """
    )

    # Action commands
    parser.add_argument('--show-config', action='store_true',
                        help='Show current configuration')
    parser.add_argument('--setup-tables', action='store_true',
                        help='Create missing tables before running')
    parser.add_argument('--describe-tables', action='store_true',
                        help='Show status and item counts of every table')
    parser.add_argument('--clear-all-data', action='store_true',
                        help='Delete every item from every table')
    parser.add_argument('--report-only', action='store_true',
                        help='Skip data generation and insertion, measure existing data')
    parser.add_argument('--skip-data-insertion', action='store_true',
                        help='Generate data but do not write it')

    # Connection
    parser.add_argument('--region', type=str, help='AWS region')
    parser.add_argument('--endpoint-url', type=str, help='DynamoDB endpoint (e.g. DynamoDB Local)')
    parser.add_argument('--env-file', type=str, help='Path to a .env file')

    # Data generation
    parser.add_argument('--users', type=int, dest='user_count', help='Number of users')
    parser.add_argument('--posts', type=int, dest='post_count', help='Number of posts')
    parser.add_argument('--comments', type=int, dest='comment_count', help='Number of comments')
    parser.add_argument('--likes', type=int, dest='like_count', help='Number of likes')
    parser.add_argument('--orders', type=int, dest='order_count', help='Number of orders')
    parser.add_argument('--order-items', type=int, dest='order_item_count', help='Number of order items')
    parser.add_argument('--seed', type=int, help='Random seed for reproducible data')

    # Benchmark configuration
    parser.add_argument('--test-user-count', type=int, help='Users to run the scenarios for')
    parser.add_argument('--iterations', type=int, help='Scenario repetitions per user')
    parser.add_argument('--batch-size', type=int, help='BatchWriteItem chunk size (max 25)')

    # Output options
    parser.add_argument('--output-dir', type=str, help='Directory for results.md and test-results.json')
    parser.add_argument('--chart', action='store_true', help='Also write a latency comparison PNG')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point"""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = load_config(
            env_file=args.env_file,
            region=args.region,
            endpoint_url=args.endpoint_url,
            user_count=args.user_count,
            post_count=args.post_count,
            comment_count=args.comment_count,
            like_count=args.like_count,
            order_count=args.order_count,
            order_item_count=args.order_item_count,
            seed=args.seed,
            test_user_count=args.test_user_count,
            iterations=args.iterations,
            batch_size=args.batch_size,
            output_dir=args.output_dir,
        )
        cli = BenchmarkCLI(config)

        if args.show_config:
            cli.show_configuration()
            return 0

        if args.describe_tables:
            cli.describe()
            return 0

        if args.clear_all_data:
            cli.clear_all_data()
            return 0

        if args.setup_tables:
            cli.setup_tables()

        run = cli.run_benchmarks(
            report_only=args.report_only,
            skip_data_insertion=args.skip_data_insertion,
            chart=args.chart,
        )
        return 1 if run.failed else 0

    except KeyboardInterrupt:
        print("\n\n⚠️  Benchmark interrupted by user")
        return 1
    except ConfigurationError as e:
        print(f"\n❌ Configuration error: {e}")
        return 2
    except Exception as e:
        print(f"\n❌ Error: {e}")
        logger.exception("Benchmark failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
