"""
Single-table design.

All entity types share one table. Items of a user live in the USER#<userId>
partition and are told apart by the sort key prefix; the EntityTypeIndex
serves "everything of a type" and the overloaded GSI1 serves comments on a
user's posts and the sharded orders-by-date pattern.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List

from boto3.dynamodb.conditions import Attr, Key

from core.design import Design, DesignType, InsertSummary, Measurement, OperationType, Outcome
from core.entities import ScreenData, to_single_table_item
from core.keys import (
    CHILD_TYPES,
    ENTITY_TYPE_INDEX,
    GSI1_INDEX,
    KEY_SEPARATOR,
    ORDER_SHARD_COUNT,
    EntityType,
    all_order_shard_keys,
    sk_prefix,
    user_comments_gsi1pk,
    user_order_items_gsi1pk,
    user_pk,
    user_sk,
    user_status_prefix,
    users_gsi1pk,
)


logger = logging.getLogger(__name__)

# Upper bound on concurrent shard queries
MAX_SHARD_WORKERS = 10


class SingleTableDesign(Design):
    """
    Single-table design with composite PK/SK keys.

    Note: every read is one request except the sharded date-range query,
    which issues one query per shard in parallel.
    """

    design_type = DesignType.SINGLE_TABLE

    def __init__(self, config, resource=None):
        super().__init__(config, resource=resource)
        self.table_name = config.single_table_name

    def table_names(self) -> List[str]:
        return [self.table_name]

    def _query(self, key_condition, index_name: str = None, filter_expression=None) -> Outcome:
        kwargs = {
            'TableName': self.table_name,
            'KeyConditionExpression': key_condition,
            'ReturnConsumedCapacity': 'TOTAL',
        }
        if index_name:
            kwargs['IndexName'] = index_name
        if filter_expression is not None:
            kwargs['FilterExpression'] = filter_expression
        return Outcome.from_response(self.client.query(**kwargs))

    def get_user(self, user_id: str) -> Measurement:
        def operation() -> Outcome:
            response = self.client.get_item(
                TableName=self.table_name,
                Key={'PK': user_pk(user_id), 'SK': user_sk(user_id)},
                ReturnConsumedCapacity='TOTAL',
            )
            return Outcome.from_response(response)

        return self.measure_operation(operation, "Get User By ID", OperationType.GET_ITEM)

    def get_children(self, user_id: str, child_type: EntityType) -> Measurement:
        """
        Query one entity type inside a user's partition.

        Example:
            PK = USER#user-00001 AND begins_with(SK, "ORDER#")
        """
        if child_type not in CHILD_TYPES:
            raise ValueError(f"{child_type.value} is not stored under a user partition")

        condition = Key('PK').eq(user_pk(user_id)) & Key('SK').begins_with(sk_prefix(child_type))
        return self.measure_operation(
            lambda: self._query(condition),
            f"Get User {child_type.value.title()}s",
            OperationType.QUERY,
        )

    def get_all_of_type(self, entity_type: EntityType) -> Measurement:
        condition = Key('entityType').eq(entity_type.value)
        return self.measure_operation(
            lambda: self._query(condition, ENTITY_TYPE_INDEX),
            f"Get All {entity_type.value.title()}s",
            OperationType.QUERY,
            used_index=True,
            index_name=ENTITY_TYPE_INDEX,
        )

    def get_user_screen_data(self, user_id: str) -> Measurement:
        """One partition query; items are split by their entityType tag."""
        def operation() -> Outcome:
            outcome = self._query(Key('PK').eq(user_pk(user_id)))
            outcome.data = ScreenData.from_entities(outcome.items)
            return outcome

        return self.measure_operation(operation, "Get User Screen Data", OperationType.QUERY)

    def get_comments_on_user_posts(self, user_id: str) -> Measurement:
        condition = Key('GSI1PK').eq(user_comments_gsi1pk(user_id))
        return self.measure_operation(
            lambda: self._query(condition, GSI1_INDEX),
            "Get Comments On User Posts",
            OperationType.QUERY,
            used_index=True,
            index_name=GSI1_INDEX,
        )

    def get_orders_by_date_range(self, start_date: str, end_date: str) -> Measurement:
        """
        Fan out one GSI1 query per order shard and merge the results.

        A failing shard fails the whole measurement; partial results are
        never reported as success.
        """
        shard_keys = all_order_shard_keys(ORDER_SHARD_COUNT)

        def query_shard(shard_key: str) -> Outcome:
            condition = Key('GSI1PK').eq(shard_key) & Key('GSI1SK').between(start_date, end_date)
            return self._query(condition, GSI1_INDEX)

        def operation() -> Outcome:
            merged = Outcome(request_count=0)
            workers = min(MAX_SHARD_WORKERS, len(shard_keys))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [executor.submit(query_shard, shard_key) for shard_key in shard_keys]
                for future in futures:
                    merged.merge(future.result())

            merged.items.sort(key=lambda order: (order.orderDate, order.orderId))
            logger.debug(f"Merged {len(merged.items)} orders from {len(shard_keys)} shards")
            return merged

        return self.measure_operation(
            operation,
            "Get Orders By Date Range",
            OperationType.PARALLEL_QUERY,
            used_index=True,
            index_name=GSI1_INDEX,
        )

    def get_users_by_status(self, status: str) -> Measurement:
        """
        Users share one GSI1 partition with GSI1SK = <status>#<userId>.

        Example:
            GSI1PK = USER AND begins_with(GSI1SK, "active#")
        """
        condition = Key('GSI1PK').eq(users_gsi1pk()) & Key('GSI1SK').begins_with(user_status_prefix(status))
        return self.measure_operation(
            lambda: self._query(condition, GSI1_INDEX),
            "Get Users By Status",
            OperationType.QUERY,
            used_index=True,
            index_name=GSI1_INDEX,
        )

    def get_users_by_email(self, email: str) -> Measurement:
        # No key on email: read every user from the type index and filter
        condition = Key('entityType').eq(EntityType.USER.value)
        return self.measure_operation(
            lambda: self._query(condition, ENTITY_TYPE_INDEX, Attr('email').eq(email)),
            "Get Users By Email",
            OperationType.QUERY,
            used_index=True,
            index_name=ENTITY_TYPE_INDEX,
        )

    def get_user_order_items(self, user_id: str) -> Measurement:
        condition = Key('GSI1PK').eq(user_order_items_gsi1pk(user_id))
        return self.measure_operation(
            lambda: self._query(condition, GSI1_INDEX),
            "Get User Order Items",
            OperationType.QUERY,
            used_index=True,
            index_name=GSI1_INDEX,
        )

    def get_order_items_by_supplier(self, supplier_id: str, start_date: str, end_date: str) -> Measurement:
        """
        The type index is sorted by SK (ORDER_ITEM#<createdAt>#<id>), so the
        date range is a key condition and only the supplier is filtered.
        """
        prefix = sk_prefix(EntityType.ORDER_ITEM)
        # Upper bound sorts after every id that shares the end timestamp
        upper = prefix + end_date + KEY_SEPARATOR + "\uffff"
        condition = (
            Key('entityType').eq(EntityType.ORDER_ITEM.value)
            & Key('SK').between(prefix + start_date, upper)
        )
        return self.measure_operation(
            lambda: self._query(condition, ENTITY_TYPE_INDEX, Attr('supplierId').eq(supplier_id)),
            "Get Order Items By Supplier",
            OperationType.QUERY,
            used_index=True,
            index_name=ENTITY_TYPE_INDEX,
        )

    def insert_dataset(self, dataset) -> List[InsertSummary]:
        items = [
            to_single_table_item(entity) for entity in dataset.all_entities()
        ]
        print(f"  📦 Inserting {len(items):,} items into {self.table_name}...")

        measurement = self.batch_write_with_chunking(self.table_name, items, "Batch Insert")
        return [InsertSummary(self.table_name, measurement)]
