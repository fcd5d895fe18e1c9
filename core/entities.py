"""
Typed entities shared by both designs.

Each entity knows how it is stored in the relational tables and in the
single table. Raw items coming back from DynamoDB are turned into entities
through parse_item(), the only place that switches on the entity type.
"""

from dataclasses import dataclass, field, fields
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from core.keys import (
    EntityType,
    child_sk,
    gsi1_keys,
    user_pk,
    user_sk,
)


@dataclass
class User:
    userId: str
    email: str
    username: str
    createdAt: str
    status: str = "active"

    entity_type = EntityType.USER

    @property
    def partition_owner(self) -> str:
        return self.userId

    def single_table_keys(self) -> Dict[str, str]:
        return {"PK": user_pk(self.userId), "SK": user_sk(self.userId)}


@dataclass
class Post:
    postId: str
    userId: str
    content: str
    createdAt: str

    entity_type = EntityType.POST

    @property
    def partition_owner(self) -> str:
        return self.userId

    def single_table_keys(self) -> Dict[str, str]:
        return {
            "PK": user_pk(self.userId),
            "SK": child_sk(EntityType.POST, self.createdAt, self.postId),
        }


@dataclass
class Comment:
    commentId: str
    userId: str
    postId: str
    postAuthorUserId: str
    content: str
    createdAt: str

    entity_type = EntityType.COMMENT

    @property
    def partition_owner(self) -> str:
        return self.userId

    def single_table_keys(self) -> Dict[str, str]:
        return {
            "PK": user_pk(self.userId),
            "SK": child_sk(EntityType.COMMENT, self.createdAt, self.commentId),
        }


@dataclass
class Follower:
    followId: str
    followerId: str
    followingId: str
    createdAt: str

    entity_type = EntityType.FOLLOWER

    @property
    def partition_owner(self) -> str:
        # Followers are stored with the user being followed
        return self.followingId

    def single_table_keys(self) -> Dict[str, str]:
        return {
            "PK": user_pk(self.followingId),
            "SK": child_sk(EntityType.FOLLOWER, self.createdAt, self.followerId),
        }


@dataclass
class Like:
    likeId: str
    userId: str
    postId: str
    postAuthorUserId: str
    createdAt: str

    entity_type = EntityType.LIKE

    @property
    def partition_owner(self) -> str:
        return self.userId

    def single_table_keys(self) -> Dict[str, str]:
        return {
            "PK": user_pk(self.userId),
            "SK": child_sk(EntityType.LIKE, self.createdAt, self.likeId),
        }


@dataclass
class Order:
    orderId: str
    userId: str
    orderDate: str
    totalAmount: Decimal
    status: str

    entity_type = EntityType.ORDER

    @property
    def partition_owner(self) -> str:
        return self.userId

    def single_table_keys(self) -> Dict[str, str]:
        return {
            "PK": user_pk(self.userId),
            "SK": child_sk(EntityType.ORDER, self.orderDate, self.orderId),
        }


@dataclass
class OrderItem:
    orderItemId: str
    orderId: str
    userId: str
    productId: str
    productName: str
    supplierId: str
    quantity: int
    unitPrice: Decimal
    createdAt: str

    entity_type = EntityType.ORDER_ITEM

    @property
    def partition_owner(self) -> str:
        # Stored with the customer who placed the order
        return self.userId

    def single_table_keys(self) -> Dict[str, str]:
        return {
            "PK": user_pk(self.userId),
            "SK": child_sk(EntityType.ORDER_ITEM, self.createdAt, self.orderItemId),
        }


Entity = Union[User, Post, Comment, Follower, Like, Order, OrderItem]

ENTITY_CLASSES = {
    EntityType.USER: User,
    EntityType.POST: Post,
    EntityType.COMMENT: Comment,
    EntityType.FOLLOWER: Follower,
    EntityType.LIKE: Like,
    EntityType.ORDER: Order,
    EntityType.ORDER_ITEM: OrderItem,
}


def entity_attributes(entity: Entity) -> Dict[str, Any]:
    """Plain attribute dict of an entity (field name -> value)."""
    return {f.name: getattr(entity, f.name) for f in fields(entity)}


def to_relational_item(entity: Entity) -> Dict[str, Any]:
    """Item written to the entity's own relational table."""
    return entity_attributes(entity)


def to_single_table_item(entity: Entity) -> Dict[str, Any]:
    """
    Item written to the single table.

    Adds PK/SK, the entityType tag and, when the type has a GSI1
    convention, the overloaded GSI1PK/GSI1SK attributes.
    """
    attributes = entity_attributes(entity)
    item = dict(entity.single_table_keys())
    item["entityType"] = entity.entity_type.value
    item.update(attributes)

    overloaded = gsi1_keys(entity.entity_type, attributes)
    if overloaded:
        item.update(overloaded)

    return item


def parse_item(item: Dict[str, Any], entity_type: Optional[EntityType] = None) -> Entity:
    """
    Convert a raw DynamoDB item into its typed entity.

    Args:
        item: Item as returned by the boto3 resource layer
        entity_type: Type to use when the item has no entityType tag
            (relational tables hold a single type each)

    Returns:
        The matching entity dataclass

    Raises:
        ValueError: If the type is missing or unknown
    """
    tag = item.get("entityType")
    if tag is not None:
        try:
            entity_type = EntityType(tag)
        except ValueError:
            raise ValueError(f"Unknown entityType '{tag}'") from None

    if entity_type is None:
        raise ValueError("Item has no entityType and no type was given")

    cls = ENTITY_CLASSES[entity_type]
    values = {f.name: item.get(f.name) for f in fields(cls)}
    return cls(**values)


def parse_items(items: List[Dict[str, Any]], entity_type: Optional[EntityType] = None) -> List[Entity]:
    return [parse_item(item, entity_type) for item in items if item]


@dataclass
class ScreenData:
    """Everything shown on a user's profile screen"""
    user: Optional[User] = None
    posts: List[Post] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)
    followers: List[Follower] = field(default_factory=list)
    likes: List[Like] = field(default_factory=list)
    orders: List[Order] = field(default_factory=list)
    order_items: List[OrderItem] = field(default_factory=list)

    def add(self, entity: Entity):
        """Place an entity in its slot."""
        if isinstance(entity, User):
            self.user = entity
        elif isinstance(entity, Post):
            self.posts.append(entity)
        elif isinstance(entity, Comment):
            self.comments.append(entity)
        elif isinstance(entity, Follower):
            self.followers.append(entity)
        elif isinstance(entity, Like):
            self.likes.append(entity)
        elif isinstance(entity, Order):
            self.orders.append(entity)
        elif isinstance(entity, OrderItem):
            self.order_items.append(entity)
        else:
            raise TypeError(f"Unsupported entity: {type(entity).__name__}")

    @classmethod
    def from_entities(cls, entities: List[Entity]) -> "ScreenData":
        screen = cls()
        for entity in entities:
            screen.add(entity)
        return screen

    @property
    def item_count(self) -> int:
        return (
            (1 if self.user else 0)
            + len(self.posts)
            + len(self.comments)
            + len(self.followers)
            + len(self.likes)
            + len(self.orders)
            + len(self.order_items)
        )
