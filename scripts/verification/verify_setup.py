#!/usr/bin/env python3
"""
Pre-Flight Checklist: Verify all setup before benchmarking
Checks configuration, credentials, tables and indexes.
"""

import sys
from pathlib import Path

import boto3
from botocore.exceptions import BotoCoreError, ClientError

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from core.config import ConfigurationError, check_credentials, load_config
from core.keys import (
    ENTITY_TYPE_INDEX,
    GSI1_INDEX,
    ORDER_ITEMS_BY_USER_INDEX,
    POSTS_BY_USER_INDEX,
    USERS_BY_STATUS_INDEX,
)
from core.schema import describe_tables


def check(condition, message_pass, message_fail):
    """Helper to print check results"""
    if condition:
        print(f"✅ {message_pass}")
        return True
    else:
        print(f"❌ {message_fail}")
        return False


def verify_setup() -> bool:
    """Run all pre-flight checks"""

    print("=" * 70)
    print("PRE-FLIGHT CHECKLIST FOR DYNAMODB DESIGN BENCHMARK")
    print("=" * 70)

    config = load_config()
    all_checks_passed = True

    # Check 1: Configuration
    print("\n1️⃣  Checking configuration...")
    issues = config.validate()
    all_checks_passed &= check(not issues,
        "configuration valid",
        f"configuration issues: {'; '.join(issues)}")

    # Check 2: Credentials
    print("\n2️⃣  Checking credentials...")
    try:
        check_credentials(config)
        all_checks_passed &= check(True, "AWS credentials found", "")
    except ConfigurationError as e:
        check(False, "", str(e))
        return False

    # Check 3: Tables
    print("\n3️⃣  Checking tables...")
    client = boto3.client('dynamodb', region_name=config.region, endpoint_url=config.endpoint_url)
    try:
        tables = {info['name']: info for info in describe_tables(client, config)}
    except (ClientError, BotoCoreError) as e:
        check(False, "", f"cannot reach DynamoDB: {e}")
        return False

    for name, info in tables.items():
        all_checks_passed &= check(info['status'] == 'ACTIVE',
            f"{name} is ACTIVE",
            f"{name} is {info['status']} - run scripts/setup/setup_dynamodb_tables.py")

    # Check 4: Indexes
    print("\n4️⃣  Checking indexes...")
    expected_indexes = {
        config.relational_tables.users: [USERS_BY_STATUS_INDEX],
        config.relational_tables.posts: [POSTS_BY_USER_INDEX],
        config.relational_tables.order_items: [ORDER_ITEMS_BY_USER_INDEX],
        config.single_table_name: [ENTITY_TYPE_INDEX, GSI1_INDEX],
    }
    for table_name, indexes in expected_indexes.items():
        present = tables.get(table_name, {}).get('indexes', [])
        for index in indexes:
            all_checks_passed &= check(index in present,
                f"{table_name}.{index} exists",
                f"{table_name}.{index} missing")

    # Check 5: Data (informational)
    print("\n5️⃣  Checking data...")
    for name, info in tables.items():
        if info['status'] == 'MISSING':
            continue
        count = info['item_count']
        if count:
            print(f"✅ {name}: {count:,} items")
        else:
            print(f"⚠️  {name}: no items reported yet (counts refresh periodically)")

    print("\n" + "=" * 70)
    if all_checks_passed:
        print("✅ ALL CHECKS PASSED - ready to benchmark")
    else:
        print("❌ SOME CHECKS FAILED - fix the issues above first")
    print("=" * 70)

    return all_checks_passed


if __name__ == "__main__":
    success = verify_setup()
    sys.exit(0 if success else 1)
