"""Tests for synthetic data generation."""

from datetime import datetime, timezone
from decimal import Decimal

from utils.data_generator import DataGenerator


REFERENCE_TIME = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def _generate(seed, **counts):
    params = dict(user_count=5, post_count=10, comment_count=20, like_count=15, order_count=25)
    params.update(counts)
    return DataGenerator(seed=seed, reference_time=REFERENCE_TIME).generate(**params)


def test_same_seed_same_data():
    assert _generate(42) == _generate(42)


def test_different_seed_different_data():
    assert _generate(1) != _generate(2)


def test_counts_and_identifiers():
    dataset = _generate(3)

    assert dataset.counts() == {
        'USER': 5, 'POST': 10, 'COMMENT': 20, 'FOLLOWER': 10, 'LIKE': 15, 'ORDER': 25, 'ORDER_ITEM': 0,
    }
    assert dataset.users[0].userId == 'user-00001'
    assert dataset.posts[0].postId == 'post-00000001'
    assert dataset.orders[-1].orderId == 'order-00000025'
    assert dataset.total == 85


def test_followers_are_unique_and_never_self():
    dataset = _generate(5, user_count=8)
    pairs = [(f.followerId, f.followingId) for f in dataset.followers]

    assert len(pairs) == 16
    assert len(set(pairs)) == len(pairs)
    assert all(follower != following for follower, following in pairs)


def test_followers_capped_by_possible_pairs():
    dataset = _generate(5, user_count=2)

    # Only user-00001 -> user-00002 and back
    assert len(dataset.followers) == 2


def test_comments_and_likes_reference_post_authors():
    dataset = _generate(9)
    authors = {post.postId: post.userId for post in dataset.posts}

    assert all(c.postAuthorUserId == authors[c.postId] for c in dataset.comments)
    assert all(like.postAuthorUserId == authors[like.postId] for like in dataset.likes)


def test_no_posts_means_no_comments_or_likes():
    dataset = _generate(9, post_count=0)

    assert dataset.comments == []
    assert dataset.likes == []


def test_orders_have_decimal_amounts_and_recent_dates():
    dataset = _generate(11)
    oldest_allowed = '2023-06-02'

    for order in dataset.orders:
        assert isinstance(order.totalAmount, Decimal)
        assert order.totalAmount > 0
        assert order.totalAmount == order.totalAmount.quantize(Decimal('0.01'))
        assert oldest_allowed <= order.orderDate <= '2024-06-01T12:00:00.000Z'
        assert order.orderDate.endswith('Z')


def test_children_spread_over_users():
    dataset = _generate(13, user_count=4, order_count=8)
    owners = [order.userId for order in dataset.orders]

    assert {owners.count(user.userId) for user in dataset.users} == {2}


def test_users_cycle_through_statuses():
    dataset = _generate(3, user_count=6)

    assert [u.status for u in dataset.users] == ['active', 'inactive', 'suspended'] * 2
    assert dataset.users[0].email == 'user1@example.com'


def test_order_items_follow_their_order():
    dataset = _generate(17, order_item_count=40)
    orders = {order.orderId: order for order in dataset.orders}

    assert len(dataset.order_items) == 40
    for item in dataset.order_items:
        order = orders[item.orderId]
        assert item.userId == order.userId
        assert item.createdAt == order.orderDate
        assert item.supplierId.startswith('supplier-')
        assert 1 <= item.quantity <= 3
        assert item.unitPrice == item.unitPrice.quantize(Decimal('0.01'))


def test_no_orders_means_no_order_items():
    assert _generate(17, order_count=0, order_item_count=10).order_items == []
