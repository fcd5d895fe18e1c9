"""
Relational (multi-table) design.

One table per entity type with simple keys; relationships are plain
attributes. Patterns the keys do not serve fall back to scans with filters,
and the profile screen is assembled with sequential per-post requests.
"""

import logging
from typing import Dict, List

from boto3.dynamodb.conditions import Attr, Key

from core.design import Design, DesignType, InsertSummary, Measurement, OperationType, Outcome
from core.entities import ScreenData, to_relational_item
from core.keys import (
    CHILD_TYPES,
    ORDER_ITEMS_BY_USER_INDEX,
    POSTS_BY_USER_INDEX,
    USERS_BY_STATUS_INDEX,
    EntityType,
)


logger = logging.getLogger(__name__)


class RelationalDesign(Design):
    """
    Relational design: every entity type (users, posts, comments, followers,
    likes, orders, order items) in its own table.
    """

    design_type = DesignType.RELATIONAL

    def __init__(self, config, resource=None):
        super().__init__(config, resource=resource)
        tables = config.relational_tables
        self.tables: Dict[EntityType, str] = {
            EntityType.USER: tables.users,
            EntityType.POST: tables.posts,
            EntityType.COMMENT: tables.comments,
            EntityType.FOLLOWER: tables.followers,
            EntityType.LIKE: tables.likes,
            EntityType.ORDER: tables.orders,
            EntityType.ORDER_ITEM: tables.order_items,
        }

    def table_names(self) -> List[str]:
        return list(self.tables.values())

    # ------------------------------------------------------------------
    # Single requests
    # ------------------------------------------------------------------

    def _get_user(self, user_id: str) -> Outcome:
        response = self.client.get_item(
            TableName=self.tables[EntityType.USER],
            Key={'userId': user_id},
            ReturnConsumedCapacity='TOTAL',
        )
        return Outcome.from_response(response, EntityType.USER)

    def _query(self, entity_type: EntityType, key_condition, index_name: str = None) -> Outcome:
        kwargs = {
            'TableName': self.tables[entity_type],
            'KeyConditionExpression': key_condition,
            'ReturnConsumedCapacity': 'TOTAL',
        }
        if index_name:
            kwargs['IndexName'] = index_name
        return Outcome.from_response(self.client.query(**kwargs), entity_type)

    def _scan(self, entity_type: EntityType, filter_expression=None) -> Outcome:
        kwargs = {
            'TableName': self.tables[entity_type],
            'ReturnConsumedCapacity': 'TOTAL',
        }
        if filter_expression is not None:
            kwargs['FilterExpression'] = filter_expression
        return Outcome.from_response(self.client.scan(**kwargs), entity_type)

    def _posts_of(self, user_id: str) -> Outcome:
        return self._query(EntityType.POST, Key('userId').eq(user_id), POSTS_BY_USER_INDEX)

    # ------------------------------------------------------------------
    # Access patterns
    # ------------------------------------------------------------------

    def get_user(self, user_id: str) -> Measurement:
        return self.measure_operation(
            lambda: self._get_user(user_id),
            "Get User By ID",
            OperationType.GET_ITEM,
        )

    def get_children(self, user_id: str, child_type: EntityType) -> Measurement:
        """
        Children of a user.

        Posts use the userId index and followers the table key; comments,
        likes and orders have no index on userId and are scanned.
        """
        if child_type not in CHILD_TYPES:
            raise ValueError(f"{child_type.value} is not a child of a user")

        test_name = f"Get User {child_type.value.title()}s"

        if child_type == EntityType.POST:
            return self.measure_operation(
                lambda: self._posts_of(user_id),
                test_name,
                OperationType.QUERY,
                used_index=True,
                index_name=POSTS_BY_USER_INDEX,
            )

        if child_type == EntityType.FOLLOWER:
            return self.measure_operation(
                lambda: self._query(EntityType.FOLLOWER, Key('followingId').eq(user_id)),
                test_name,
                OperationType.QUERY,
            )

        return self.measure_operation(
            lambda: self._scan(child_type, Attr('userId').eq(user_id)),
            test_name,
            OperationType.SCAN,
        )

    def get_all_of_type(self, entity_type: EntityType) -> Measurement:
        # Each table holds exactly one type, so no filter is needed
        return self.measure_operation(
            lambda: self._scan(entity_type),
            f"Get All {entity_type.value.title()}s",
            OperationType.SCAN,
        )

    def get_user_screen_data(self, user_id: str) -> Measurement:
        """
        Build the profile screen with sequential requests:
        user, posts (index), followers, then comments and likes per post.
        """
        def operation() -> Outcome:
            outcome = Outcome(request_count=0)
            outcome.merge(self._get_user(user_id))

            posts = self._posts_of(user_id)
            outcome.merge(posts)
            outcome.merge(self._query(EntityType.FOLLOWER, Key('followingId').eq(user_id)))

            for post in posts.items:
                outcome.merge(self._query(EntityType.COMMENT, Key('postId').eq(post.postId)))
                outcome.merge(self._query(EntityType.LIKE, Key('postId').eq(post.postId)))

            logger.debug(f"Screen data for {user_id}: {outcome.request_count} requests")
            outcome.data = ScreenData.from_entities(outcome.items)
            return outcome

        return self.measure_operation(
            operation,
            "Get User Screen Data",
            OperationType.MULTI_REQUEST,
            used_index=True,
            index_name=POSTS_BY_USER_INDEX,
        )

    def get_comments_on_user_posts(self, user_id: str) -> Measurement:
        def operation() -> Outcome:
            posts = self._posts_of(user_id)
            outcome = Outcome(
                scanned_count=posts.scanned_count,
                capacity_units=posts.capacity_units,
                request_count=posts.request_count,
            )
            for post in posts.items:
                outcome.merge(self._query(EntityType.COMMENT, Key('postId').eq(post.postId)))
            return outcome

        return self.measure_operation(
            operation,
            "Get Comments On User Posts",
            OperationType.MULTI_REQUEST,
            used_index=True,
            index_name=POSTS_BY_USER_INDEX,
        )

    def get_orders_by_date_range(self, start_date: str, end_date: str) -> Measurement:
        return self.measure_operation(
            lambda: self._scan(EntityType.ORDER, Attr('orderDate').between(start_date, end_date)),
            "Get Orders By Date Range",
            OperationType.SCAN,
        )

    def get_users_by_status(self, status: str) -> Measurement:
        return self.measure_operation(
            lambda: self._query(EntityType.USER, Key('status').eq(status), USERS_BY_STATUS_INDEX),
            "Get Users By Status",
            OperationType.QUERY,
            used_index=True,
            index_name=USERS_BY_STATUS_INDEX,
        )

    def get_users_by_email(self, email: str) -> Measurement:
        return self.measure_operation(
            lambda: self._scan(EntityType.USER, Attr('email').eq(email)),
            "Get Users By Email",
            OperationType.SCAN,
        )

    def get_user_order_items(self, user_id: str) -> Measurement:
        return self.measure_operation(
            lambda: self._query(EntityType.ORDER_ITEM, Key('userId').eq(user_id), ORDER_ITEMS_BY_USER_INDEX),
            "Get User Order Items",
            OperationType.QUERY,
            used_index=True,
            index_name=ORDER_ITEMS_BY_USER_INDEX,
        )

    def get_order_items_by_supplier(self, supplier_id: str, start_date: str, end_date: str) -> Measurement:
        # No supplier index on the order items table
        condition = Attr('supplierId').eq(supplier_id) & Attr('createdAt').between(start_date, end_date)
        return self.measure_operation(
            lambda: self._scan(EntityType.ORDER_ITEM, condition),
            "Get Order Items By Supplier",
            OperationType.SCAN,
        )

    # ------------------------------------------------------------------
    # Data management
    # ------------------------------------------------------------------

    def insert_dataset(self, dataset) -> List[InsertSummary]:
        summaries = []
        for entity_type, entities in dataset.by_type().items():
            if not entities:
                continue

            table_name = self.tables[entity_type]
            items = [to_relational_item(entity) for entity in entities]
            print(f"  📦 Inserting {len(items):,} items into {table_name}...")

            measurement = self.batch_write_with_chunking(table_name, items, "Batch Insert")
            summaries.append(InsertSummary(table_name, measurement))
        return summaries
