"""
DynamoDB table definitions for both designs.

Used by the setup script and by the test fixtures so the benchmark always
runs against the same key layout.
"""

from typing import Any, Dict, List

from core.config import BenchmarkConfig
from core.keys import (
    ENTITY_TYPE_INDEX,
    GSI1_INDEX,
    ORDER_ITEMS_BY_USER_INDEX,
    POSTS_BY_USER_INDEX,
    USERS_BY_STATUS_INDEX,
)


def _attr(name: str) -> Dict[str, str]:
    return {'AttributeName': name, 'AttributeType': 'S'}


def _key(hash_key: str, range_key: str = None) -> List[Dict[str, str]]:
    schema = [{'AttributeName': hash_key, 'KeyType': 'HASH'}]
    if range_key:
        schema.append({'AttributeName': range_key, 'KeyType': 'RANGE'})
    return schema


def _gsi(name: str, hash_key: str, range_key: str = None) -> Dict[str, Any]:
    return {
        'IndexName': name,
        'KeySchema': _key(hash_key, range_key),
        'Projection': {'ProjectionType': 'ALL'},
    }


def relational_table_definitions(config: BenchmarkConfig) -> Dict[str, Dict[str, Any]]:
    """
    create_table arguments for every relational table, keyed by table name.

    The orders table has no index on userId and the order items table none
    on supplierId; those patterns fall back to scans.
    """
    tables = config.relational_tables
    return {
        tables.users: {
            'AttributeDefinitions': [_attr('userId'), _attr('status'), _attr('createdAt')],
            'KeySchema': _key('userId'),
            'GlobalSecondaryIndexes': [_gsi(USERS_BY_STATUS_INDEX, 'status', 'createdAt')],
            'BillingMode': 'PAY_PER_REQUEST',
        },
        tables.posts: {
            'AttributeDefinitions': [_attr('postId'), _attr('userId'), _attr('createdAt')],
            'KeySchema': _key('postId'),
            'GlobalSecondaryIndexes': [_gsi(POSTS_BY_USER_INDEX, 'userId', 'createdAt')],
            'BillingMode': 'PAY_PER_REQUEST',
        },
        tables.comments: {
            'AttributeDefinitions': [_attr('postId'), _attr('commentId')],
            'KeySchema': _key('postId', 'commentId'),
            'BillingMode': 'PAY_PER_REQUEST',
        },
        tables.followers: {
            'AttributeDefinitions': [_attr('followingId'), _attr('followerId')],
            'KeySchema': _key('followingId', 'followerId'),
            'BillingMode': 'PAY_PER_REQUEST',
        },
        tables.likes: {
            'AttributeDefinitions': [_attr('postId'), _attr('likeId')],
            'KeySchema': _key('postId', 'likeId'),
            'BillingMode': 'PAY_PER_REQUEST',
        },
        tables.orders: {
            'AttributeDefinitions': [_attr('orderId')],
            'KeySchema': _key('orderId'),
            'BillingMode': 'PAY_PER_REQUEST',
        },
        tables.order_items: {
            'AttributeDefinitions': [_attr('orderItemId'), _attr('userId'), _attr('createdAt')],
            'KeySchema': _key('orderItemId'),
            'GlobalSecondaryIndexes': [_gsi(ORDER_ITEMS_BY_USER_INDEX, 'userId', 'createdAt')],
            'BillingMode': 'PAY_PER_REQUEST',
        },
    }


def single_table_definition(config: BenchmarkConfig) -> Dict[str, Dict[str, Any]]:
    """create_table arguments for the single table."""
    return {
        config.single_table_name: {
            'AttributeDefinitions': [
                _attr('PK'), _attr('SK'), _attr('entityType'), _attr('GSI1PK'), _attr('GSI1SK'),
            ],
            'KeySchema': _key('PK', 'SK'),
            'GlobalSecondaryIndexes': [
                _gsi(ENTITY_TYPE_INDEX, 'entityType', 'SK'),
                _gsi(GSI1_INDEX, 'GSI1PK', 'GSI1SK'),
            ],
            'BillingMode': 'PAY_PER_REQUEST',
        }
    }


def all_table_definitions(config: BenchmarkConfig) -> Dict[str, Dict[str, Any]]:
    definitions = relational_table_definitions(config)
    definitions.update(single_table_definition(config))
    return definitions


def key_attributes(definition: Dict[str, Any]) -> List[str]:
    """Primary key attribute names of a table definition, hash key first."""
    return [entry['AttributeName'] for entry in definition['KeySchema']]


def create_tables(dynamodb_client, config: BenchmarkConfig, wait: bool = True) -> List[str]:
    """
    Create any missing table.

    Args:
        dynamodb_client: boto3 DynamoDB client
        config: Benchmark configuration (table names)
        wait: Block until every table is ACTIVE

    Returns:
        Names of the tables that were created
    """
    created = []
    definitions = all_table_definitions(config)

    for table_name, definition in definitions.items():
        try:
            dynamodb_client.describe_table(TableName=table_name)
            print(f"   ⚠️  Table {table_name} already exists, skipping...")
            continue
        except dynamodb_client.exceptions.ResourceNotFoundException:
            pass

        dynamodb_client.create_table(TableName=table_name, **definition)
        created.append(table_name)
        print(f"   ✅ Table creation initiated: {table_name}")

    if wait and created:
        print("   ⏳ Waiting for tables to become active...")
        waiter = dynamodb_client.get_waiter('table_exists')
        for table_name in created:
            waiter.wait(TableName=table_name)

    return created


def describe_tables(dynamodb_client, config: BenchmarkConfig) -> List[Dict[str, Any]]:
    """
    Status of every benchmark table.

    Returns:
        One dict per table: name, status, item count, key schema, billing
        mode and index names. Missing tables have status MISSING.
    """
    descriptions = []
    for table_name in all_table_definitions(config):
        try:
            table = dynamodb_client.describe_table(TableName=table_name)['Table']
        except dynamodb_client.exceptions.ResourceNotFoundException:
            descriptions.append({'name': table_name, 'status': 'MISSING'})
            continue

        descriptions.append({
            'name': table_name,
            'status': table['TableStatus'],
            'item_count': table.get('ItemCount', 0),
            'key_schema': [f"{k['AttributeName']} ({k['KeyType']})" for k in table['KeySchema']],
            'billing_mode': table.get('BillingModeSummary', {}).get('BillingMode', 'PROVISIONED'),
            'indexes': [index['IndexName'] for index in table.get('GlobalSecondaryIndexes', [])],
        })
    return descriptions


def print_table_descriptions(descriptions: List[Dict[str, Any]]):
    print("\n📊 Table Summary:")
    for info in descriptions:
        if info['status'] == 'MISSING':
            print(f"   ❌ {info['name']}: not found")
            continue

        print(f"   • {info['name']}")
        print(f"     - Status: {info['status']}")
        print(f"     - Items: {info['item_count']:,}")
        print(f"     - Keys: {', '.join(info['key_schema'])}")
        print(f"     - Billing: {info['billing_mode']}")
        if info['indexes']:
            print(f"     - Indexes: {', '.join(info['indexes'])}")
