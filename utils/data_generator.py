"""
Synthetic social data for both designs.

The same DataSet is written to the relational tables and to the single
table, so every read scenario compares identical content. Generation is
deterministic for a given seed and reference time.
"""

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from core.entities import Comment, Entity, Follower, Like, Order, OrderItem, Post, User
from core.keys import EntityType


logger = logging.getLogger(__name__)

POST_CONTENT = [
    "Just had an amazing day!",
    "Working on some exciting new features",
    "Coffee time ☕",
    "Learning new technologies",
    "Beautiful sunset today",
    "Productive coding session",
    "Great team meeting",
    "New project ideas",
    "Weekend plans",
    "Tech conference insights",
]

COMMENT_CONTENT = [
    "Great post!",
    "Thanks for sharing",
    "Interesting perspective",
    "Well said!",
    "I agree with this",
    "Food for thought",
    "Nice insights",
    "Keep it up!",
    "This is helpful",
    "Good point!",
]

ORDER_STATUSES = ['pending', 'processing', 'shipped', 'delivered', 'cancelled']

# Assigned round-robin, so user-00001 is always active
USER_STATUSES = ['active', 'inactive', 'suspended']

PRODUCTS = [
    ('prod-001', 'Wireless Mouse'),
    ('prod-002', 'Mechanical Keyboard'),
    ('prod-003', 'USB-C Hub'),
    ('prod-004', '27" Monitor'),
    ('prod-005', 'Laptop Stand'),
    ('prod-006', 'Noise Cancelling Headphones'),
    ('prod-007', 'Webcam'),
    ('prod-008', 'Desk Lamp'),
]

SUPPLIER_COUNT = 5

# Timestamps are spread over the last year
HISTORY_DAYS = 365


def user_id_for(index: int) -> str:
    return f"user-{index:05d}"


def email_for(index: int) -> str:
    return f"user{index}@example.com"


def supplier_id_for(index: int) -> str:
    return f"supplier-{index:03d}"


def _entity_id(prefix: str, index: int) -> str:
    return f"{prefix}-{index:08d}"


def iso_timestamp(moment: datetime) -> str:
    """UTC timestamp with millisecond precision, e.g. 2024-03-01T10:00:00.000Z"""
    return moment.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


@dataclass
class DataSet:
    """Generated entities, grouped by type"""
    users: List[User] = field(default_factory=list)
    posts: List[Post] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)
    followers: List[Follower] = field(default_factory=list)
    likes: List[Like] = field(default_factory=list)
    orders: List[Order] = field(default_factory=list)
    order_items: List[OrderItem] = field(default_factory=list)

    def by_type(self) -> Dict[EntityType, List[Entity]]:
        return {
            EntityType.USER: self.users,
            EntityType.POST: self.posts,
            EntityType.COMMENT: self.comments,
            EntityType.FOLLOWER: self.followers,
            EntityType.LIKE: self.likes,
            EntityType.ORDER: self.orders,
            EntityType.ORDER_ITEM: self.order_items,
        }

    def all_entities(self) -> List[Entity]:
        entities = []
        for group in self.by_type().values():
            entities.extend(group)
        return entities

    def counts(self) -> Dict[str, int]:
        return {entity_type.value: len(group) for entity_type, group in self.by_type().items()}

    @property
    def total(self) -> int:
        return sum(len(group) for group in self.by_type().values())


class DataGenerator:
    """
    Generate users and their posts, comments, followers, likes, orders
    and order items.

    Children are spread over users (and comments/likes over posts) with a
    modulo distribution, so every user gets a similar share.
    """

    def __init__(self, seed: Optional[int] = None, reference_time: Optional[datetime] = None):
        self.seed = seed
        self.random = random.Random(seed)
        self.reference_time = reference_time or datetime.now(timezone.utc)

    def _timestamp(self) -> str:
        offset = timedelta(seconds=self.random.random() * HISTORY_DAYS * 24 * 60 * 60)
        return iso_timestamp(self.reference_time - offset)

    def generate(
        self,
        user_count: int,
        post_count: int,
        comment_count: int,
        like_count: int,
        order_count: int,
        order_item_count: int = 0,
        follower_count: Optional[int] = None,
    ) -> DataSet:
        """
        Generate a complete data set.

        Args:
            user_count: Number of users (at least 1)
            post_count: Number of posts
            comment_count: Number of comments (needs posts)
            like_count: Number of likes (needs posts)
            order_count: Number of orders
            order_item_count: Number of order items (needs orders)
            follower_count: Follow edges; defaults to max(2 x users, 10)

        Returns:
            DataSet
        """
        if user_count < 1:
            raise ValueError("user_count must be at least 1")

        if follower_count is None:
            follower_count = max(user_count * 2, 10)

        users = self.generate_users(user_count)
        posts = self.generate_posts(post_count, users)
        orders = self.generate_orders(order_count, users)
        dataset = DataSet(
            users=users,
            posts=posts,
            comments=self.generate_comments(comment_count, users, posts),
            followers=self.generate_followers(follower_count, users),
            likes=self.generate_likes(like_count, users, posts),
            orders=orders,
            order_items=self.generate_order_items(order_item_count, orders),
        )

        logger.info(f"Generated data set: {dataset.counts()}")
        return dataset

    def generate_from_config(self, config) -> DataSet:
        return self.generate(
            user_count=config.user_count,
            post_count=config.post_count,
            comment_count=config.comment_count,
            like_count=config.like_count,
            order_count=config.order_count,
            order_item_count=config.order_item_count,
            follower_count=config.follower_count,
        )

    def generate_users(self, count: int) -> List[User]:
        users = []
        for i in range(1, count + 1):
            users.append(User(
                userId=user_id_for(i),
                email=email_for(i),
                username=f"user{i}",
                createdAt=self._timestamp(),
                status=USER_STATUSES[(i - 1) % len(USER_STATUSES)],
            ))
        return users

    def generate_posts(self, count: int, users: List[User]) -> List[Post]:
        posts = []
        for i in range(1, count + 1):
            posts.append(Post(
                postId=_entity_id("post", i),
                userId=users[i % len(users)].userId,
                content=self.random.choice(POST_CONTENT),
                createdAt=self._timestamp(),
            ))
        return posts

    def generate_comments(self, count: int, users: List[User], posts: List[Post]) -> List[Comment]:
        if not posts:
            return []

        comments = []
        for i in range(1, count + 1):
            post = posts[i % len(posts)]
            comments.append(Comment(
                commentId=_entity_id("comment", i),
                userId=users[i % len(users)].userId,
                postId=post.postId,
                postAuthorUserId=post.userId,
                content=self.random.choice(COMMENT_CONTENT),
                createdAt=self._timestamp(),
            ))
        return comments

    def generate_followers(self, count: int, users: List[User]) -> List[Follower]:
        """
        Unique follower -> following pairs; nobody follows themselves.

        The count is capped at the number of possible pairs.
        """
        possible = len(users) * (len(users) - 1)
        if count > possible:
            logger.warning(f"⚠️  Only {possible} follow pairs possible, generating {possible} instead of {count}")
            count = possible

        used = set()
        followers = []
        while len(followers) < count:
            follower = self.random.choice(users).userId
            following = self.random.choice(users).userId
            if follower == following or (follower, following) in used:
                continue

            used.add((follower, following))
            followers.append(Follower(
                followId=_entity_id("follow", len(followers) + 1),
                followerId=follower,
                followingId=following,
                createdAt=self._timestamp(),
            ))
        return followers

    def generate_likes(self, count: int, users: List[User], posts: List[Post]) -> List[Like]:
        if not posts:
            return []

        likes = []
        for i in range(1, count + 1):
            post = posts[i % len(posts)]
            likes.append(Like(
                likeId=_entity_id("like", i),
                userId=users[i % len(users)].userId,
                postId=post.postId,
                postAuthorUserId=post.userId,
                createdAt=self._timestamp(),
            ))
        return likes

    def _order_total(self) -> Decimal:
        total = Decimal("0.00")
        for _ in range(self.random.randint(1, 5)):
            quantity = self.random.randint(1, 3)
            unit_price = Decimal(self.random.randint(500, 20000)) / 100
            total += quantity * unit_price
        return total.quantize(Decimal("0.01"))

    def generate_orders(self, count: int, users: List[User]) -> List[Order]:
        orders = []
        for i in range(1, count + 1):
            orders.append(Order(
                orderId=_entity_id("order", i),
                userId=users[i % len(users)].userId,
                orderDate=self._timestamp(),
                totalAmount=self._order_total(),
                status=self.random.choice(ORDER_STATUSES),
            ))

        distribution = {}
        for order in orders:
            distribution[order.userId] = distribution.get(order.userId, 0) + 1
        logger.debug(f"Order distribution: {distribution}")
        return orders

    def generate_order_items(self, count: int, orders: List[Order]) -> List[OrderItem]:
        """Items spread over orders; each belongs to the order's customer."""
        if not orders:
            return []

        items = []
        for i in range(1, count + 1):
            order = orders[i % len(orders)]
            product_id, product_name = self.random.choice(PRODUCTS)
            items.append(OrderItem(
                orderItemId=_entity_id("orderitem", i),
                orderId=order.orderId,
                userId=order.userId,
                productId=product_id,
                productName=product_name,
                supplierId=supplier_id_for(self.random.randint(1, SUPPLIER_COUNT)),
                quantity=self.random.randint(1, 3),
                unitPrice=(Decimal(self.random.randint(500, 20000)) / 100).quantize(Decimal("0.01")),
                createdAt=order.orderDate,
            ))
        return items
