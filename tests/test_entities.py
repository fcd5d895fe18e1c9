"""Tests for typed entities and item conversion."""

from decimal import Decimal

import pytest

from core.entities import (
    Comment,
    Follower,
    Order,
    OrderItem,
    Post,
    ScreenData,
    User,
    parse_item,
    parse_items,
    to_relational_item,
    to_single_table_item,
)
from core.keys import EntityType, all_order_shard_keys, order_shard


USER = User(userId='user-00001', email='user1@example.com', username='user1', createdAt='2024-01-01T00:00:00.000Z')
POST = Post(postId='post-00000001', userId='user-00001', content='Hello', createdAt='2024-01-02T00:00:00.000Z')
COMMENT = Comment(
    commentId='comment-00000001',
    userId='user-00002',
    postId='post-00000001',
    postAuthorUserId='user-00001',
    content='Great post!',
    createdAt='2024-01-03T00:00:00.000Z',
)
FOLLOWER = Follower(
    followId='follow-00000001',
    followerId='user-00002',
    followingId='user-00001',
    createdAt='2024-01-04T00:00:00.000Z',
)
ORDER = Order(
    orderId='order-00000001',
    userId='user-00001',
    orderDate='2024-01-05T00:00:00.000Z',
    totalAmount=Decimal('42.50'),
    status='shipped',
)
ORDER_ITEM = OrderItem(
    orderItemId='orderitem-00000001',
    orderId='order-00000001',
    userId='user-00001',
    productId='prod-001',
    productName='Wireless Mouse',
    supplierId='supplier-002',
    quantity=2,
    unitPrice=Decimal('19.99'),
    createdAt='2024-01-05T00:00:00.000Z',
)


def test_relational_item_is_plain_attributes():
    assert to_relational_item(POST) == {
        'postId': 'post-00000001',
        'userId': 'user-00001',
        'content': 'Hello',
        'createdAt': '2024-01-02T00:00:00.000Z',
    }


def test_single_table_user_item():
    item = to_single_table_item(USER)

    assert item['PK'] == 'USER#user-00001'
    assert item['SK'] == 'USER#user-00001'
    assert item['entityType'] == 'USER'
    assert item['GSI1PK'] == 'USER'
    assert item['GSI1SK'] == 'active#user-00001'


def test_single_table_follower_lives_with_followed_user():
    item = to_single_table_item(FOLLOWER)

    assert item['PK'] == 'USER#user-00001'
    assert item['SK'] == 'FOLLOWER#2024-01-04T00:00:00.000Z#user-00002'


def test_single_table_comment_is_projected_for_post_author():
    item = to_single_table_item(COMMENT)

    assert item['PK'] == 'USER#user-00002'
    assert item['GSI1PK'] == 'USER_COMMENTS#user-00001'
    assert item['GSI1SK'] == COMMENT.createdAt


def test_single_table_order_is_sharded():
    item = to_single_table_item(ORDER)

    assert item['SK'] == 'ORDER#2024-01-05T00:00:00.000Z#order-00000001'
    assert item['GSI1PK'] == f"ORDER#{order_shard('order-00000001')}"
    assert item['GSI1PK'] in all_order_shard_keys()
    assert item['GSI1SK'] == ORDER.orderDate
    assert item['totalAmount'] == Decimal('42.50')


def test_single_table_order_item_lives_with_buyer():
    item = to_single_table_item(ORDER_ITEM)

    assert item['PK'] == 'USER#user-00001'
    assert item['SK'] == 'ORDER_ITEM#2024-01-05T00:00:00.000Z#orderitem-00000001'
    assert item['GSI1PK'] == 'USER_ORDER_ITEMS#user-00001'
    assert item['supplierId'] == 'supplier-002'


@pytest.mark.parametrize('entity', [USER, POST, COMMENT, FOLLOWER, ORDER, ORDER_ITEM])
def test_parse_item_dispatches_on_tag(entity):
    assert parse_item(to_single_table_item(entity)) == entity


def test_parse_item_uses_given_type_for_untagged_items():
    assert parse_item(to_relational_item(POST), EntityType.POST) == POST


def test_parse_item_rejects_unknown_tag():
    with pytest.raises(ValueError, match='Unknown entityType'):
        parse_item({'entityType': 'INVOICE', 'PK': 'X'})


def test_parse_item_requires_a_type():
    with pytest.raises(ValueError):
        parse_item({'postId': 'post-00000001'})


def test_parse_items_skips_empty():
    assert parse_items([{}, to_single_table_item(USER)]) == [USER]


def test_screen_data_groups_entities():
    screen = ScreenData.from_entities([USER, POST, COMMENT, FOLLOWER, ORDER, ORDER_ITEM])

    assert screen.user == USER
    assert screen.posts == [POST]
    assert screen.comments == [COMMENT]
    assert screen.followers == [FOLLOWER]
    assert screen.likes == []
    assert screen.orders == [ORDER]
    assert screen.order_items == [ORDER_ITEM]
    assert screen.item_count == 6


def test_screen_data_rejects_unknown_objects():
    with pytest.raises(TypeError):
        ScreenData().add({'userId': 'user-00001'})
