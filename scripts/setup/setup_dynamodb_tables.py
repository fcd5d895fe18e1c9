"""
Create the DynamoDB tables for both designs.
Run this once before benchmarking (or use run_benchmark.py --setup-tables).
"""
import sys
from pathlib import Path

import boto3

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from core.config import ConfigurationError, ensure_valid, load_config
from core.schema import all_table_definitions, create_tables, describe_tables, print_table_descriptions


def main():
    config = load_config()
    try:
        ensure_valid(config)
    except ConfigurationError as e:
        print(f"❌ {e}")
        sys.exit(1)

    dynamodb = boto3.client('dynamodb', region_name=config.region, endpoint_url=config.endpoint_url)

    print("=" * 80)
    print("Creating DynamoDB Tables")
    print("=" * 80)
    for table_name in all_table_definitions(config):
        print(f"   📦 {table_name}")

    try:
        create_tables(dynamodb, config)
    except Exception as e:
        print(f"   ❌ Error creating tables: {e}")
        sys.exit(1)

    print("\n" + "=" * 80)
    print("✅ All tables created successfully!")
    print("=" * 80)

    print_table_descriptions(describe_tables(dynamodb, config))

    print("\n🎯 Next Steps:")
    print("   1. Run: python run_benchmark.py --users 10 --orders 200")
    print("   2. Review results.md and test-results.json")


if __name__ == "__main__":
    print("\n⚙️  AWS Region:", load_config().region)
    confirm = input("\nCreate DynamoDB tables? (yes/no): ")

    if confirm.lower() == 'yes':
        main()
    else:
        print("Cancelled.")
