"""Tests for the relational design, including how it compares to the single table."""

from decimal import Decimal

import pytest

from core.design import DesignType, OperationType
from core.entities import Order, User
from core.keys import ORDER_ITEMS_BY_USER_INDEX, POSTS_BY_USER_INDEX, USERS_BY_STATUS_INDEX, EntityType
from utils.data_generator import DataSet


def test_get_user(relational, loaded):
    measurement = relational.get_user('user-00003')

    assert measurement.success
    assert measurement.design == DesignType.RELATIONAL
    assert measurement.items == [loaded.users[2]]


def test_get_user_is_repeatable(relational, loaded):
    assert relational.get_user('user-00001').items == relational.get_user('user-00001').items


def test_posts_use_the_user_index(relational, loaded):
    measurement = relational.get_children('user-00001', EntityType.POST)

    assert measurement.used_index
    assert measurement.index_name == POSTS_BY_USER_INDEX
    assert measurement.operation == OperationType.QUERY
    assert {p.postId for p in measurement.items} == {p.postId for p in loaded.posts if p.userId == 'user-00001'}


def test_followers_use_the_table_key(relational, loaded):
    measurement = relational.get_children('user-00002', EntityType.FOLLOWER)

    assert measurement.operation == OperationType.QUERY
    assert {f.followerId for f in measurement.items} == {
        f.followerId for f in loaded.followers if f.followingId == 'user-00002'
    }


@pytest.mark.parametrize('child_type', [EntityType.COMMENT, EntityType.LIKE, EntityType.ORDER, EntityType.ORDER_ITEM])
def test_unindexed_children_are_scanned(relational, loaded, child_type):
    measurement = relational.get_children('user-00001', child_type)
    owned = [e for e in loaded.by_type()[child_type] if e.userId == 'user-00001']

    assert measurement.success
    assert measurement.operation == OperationType.SCAN
    assert not measurement.used_index
    assert len(measurement.items) == len(owned)
    assert all(e.userId == 'user-00001' for e in measurement.items)
    assert measurement.scanned_count == len(loaded.by_type()[child_type])


def test_children_of_user_without_children(relational, loaded):
    measurement = relational.get_children('user-99999', EntityType.POST)

    assert measurement.success
    assert measurement.items == []


def test_get_all_of_type_scans_the_table(relational, loaded):
    measurement = relational.get_all_of_type(EntityType.ORDER)

    assert measurement.operation == OperationType.SCAN
    assert sorted(o.orderId for o in measurement.items) == sorted(o.orderId for o in loaded.orders)


def test_screen_data_is_n_plus_one(relational, loaded):
    user_id = 'user-00001'
    posts = [p for p in loaded.posts if p.userId == user_id]
    post_ids = {p.postId for p in posts}

    measurement = relational.get_user_screen_data(user_id)
    screen = measurement.data

    assert measurement.success
    assert measurement.operation == OperationType.MULTI_REQUEST
    # user + posts + followers, then comments and likes for every post
    assert measurement.request_count == 3 + 2 * len(posts)
    assert screen.user == loaded.users[0]
    assert {p.postId for p in screen.posts} == post_ids
    assert {c.commentId for c in screen.comments} == {c.commentId for c in loaded.comments if c.postId in post_ids}
    assert {like.likeId for like in screen.likes} == {like.likeId for like in loaded.likes if like.postId in post_ids}


def test_comments_on_user_posts_match_single_table(relational, single_table, loaded):
    for user in loaded.users:
        relational_ids = {c.commentId for c in relational.get_comments_on_user_posts(user.userId).items}
        single_ids = {c.commentId for c in single_table.get_comments_on_user_posts(user.userId).items}

        assert relational_ids == single_ids


def test_orders_by_date_range_match_single_table(relational, single_table, loaded):
    start, end = '2023-06-01T00:00:00.000Z', '2024-06-02T00:00:00.000Z'

    relational_result = relational.get_orders_by_date_range(start, end)
    single_result = single_table.get_orders_by_date_range(start, end)

    assert relational_result.operation == OperationType.SCAN
    assert sorted(o.orderId for o in relational_result.items) == sorted(o.orderId for o in single_result.items)
    assert len(relational_result.items) == len(loaded.orders)


def test_orders_scan_reads_more_than_partition_query(relational, single_table):
    users = [
        User(userId=f'user-0000{i}', email=f'user{i}@example.com', username=f'user{i}', createdAt='2024-01-01T00:00:00.000Z')
        for i in (1, 2)
    ]
    orders = [
        Order(
            orderId=f'order-0000000{i}',
            userId='user-00001' if i <= 3 else 'user-00002',
            orderDate=f'2024-01-0{i}T00:00:00.000Z',
            totalAmount=Decimal('19.99'),
            status='delivered',
        )
        for i in range(1, 6)
    ]
    dataset = DataSet(users=users, orders=orders)
    relational.insert_dataset(dataset)
    single_table.insert_dataset(dataset)

    relational_result = relational.get_children('user-00001', EntityType.ORDER)
    single_result = single_table.get_children('user-00001', EntityType.ORDER)

    assert relational_result.item_count == single_result.item_count == 3
    assert {o.orderId for o in relational_result.items} == {o.orderId for o in single_result.items}
    assert relational_result.scanned_count == 5
    assert single_result.scanned_count == 3
    assert relational_result.scanned_count > single_result.scanned_count


def test_insert_dataset_one_summary_per_table(relational, dataset, config):
    summaries = relational.insert_dataset(dataset)

    by_table = {s.table_name: s for s in summaries}
    assert set(by_table) == set(config.relational_tables.all())
    assert by_table[config.relational_tables.orders].inserted == len(dataset.orders)
    assert by_table[config.relational_tables.followers].inserted == len(dataset.followers)
    assert all(s.unprocessed == 0 and s.failed == 0 for s in summaries)


def test_clear_all_data_empties_every_table(relational, loaded, dynamodb_resource, config):
    deleted = relational.clear_all_data()

    assert deleted == loaded.total
    for table_name in config.relational_tables.all():
        assert dynamodb_resource.Table(table_name).scan()['Count'] == 0


def test_users_by_status_use_the_status_index(relational, single_table, loaded):
    for status in ('active', 'inactive', 'suspended'):
        relational_result = relational.get_users_by_status(status)
        single_result = single_table.get_users_by_status(status)

        assert relational_result.success
        assert relational_result.index_name == USERS_BY_STATUS_INDEX
        assert {u.userId for u in relational_result.items} == {u.userId for u in loaded.users if u.status == status}
        assert {u.userId for u in relational_result.items} == {u.userId for u in single_result.items}


def test_users_by_email_is_a_scan(relational, loaded):
    measurement = relational.get_users_by_email('user3@example.com')

    assert measurement.operation == OperationType.SCAN
    assert measurement.items == [loaded.users[2]]
    assert measurement.scanned_count == len(loaded.users)


def test_users_by_email_without_match(relational, loaded):
    measurement = relational.get_users_by_email('nobody@example.com')

    assert measurement.success
    assert measurement.items == []


def test_user_order_items_match_single_table(relational, single_table, loaded):
    for user in loaded.users:
        relational_result = relational.get_user_order_items(user.userId)
        single_result = single_table.get_user_order_items(user.userId)

        assert relational_result.index_name == ORDER_ITEMS_BY_USER_INDEX
        assert {i.orderItemId for i in relational_result.items} == {i.orderItemId for i in single_result.items}
        assert {i.orderItemId for i in relational_result.items} == {
            i.orderItemId for i in loaded.order_items if i.userId == user.userId
        }


def test_order_items_by_supplier_match_single_table(relational, single_table, loaded):
    start, end = '2023-06-01T00:00:00.000Z', '2024-06-02T00:00:00.000Z'
    for supplier_id in {i.supplierId for i in loaded.order_items}:
        relational_result = relational.get_order_items_by_supplier(supplier_id, start, end)
        single_result = single_table.get_order_items_by_supplier(supplier_id, start, end)

        assert relational_result.operation == OperationType.SCAN
        assert relational_result.scanned_count == len(loaded.order_items)
        assert {i.orderItemId for i in relational_result.items} == {i.orderItemId for i in single_result.items}
        assert all(i.supplierId == supplier_id for i in relational_result.items)
