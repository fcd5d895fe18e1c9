"""
Key scheme for the single-table design.

Every item lives under a partition owned by a user (USER#<userId>) and is
discriminated inside that partition by a sort key starting with its entity
prefix (POST#, ORDER#, ...). The overloaded GSI1 carries a different meaning
per entity type; that convention is declared once in GSI1_CONVENTIONS.
"""

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple


KEY_SEPARATOR = "#"

# Index names shared by the table definitions and the query code
ENTITY_TYPE_INDEX = "EntityTypeIndex"
GSI1_INDEX = "GSI1"
POSTS_BY_USER_INDEX = "PostsByUserIdIndex"
USERS_BY_STATUS_INDEX = "UsersByStatusIndex"
ORDER_ITEMS_BY_USER_INDEX = "OrderItemsByUserIdIndex"

# Fixed fan-out of the orders-by-date pattern. Items are written to and read
# from the same shard space, so this is part of the key scheme, not a setting.
ORDER_SHARD_COUNT = 20


class EntityType(Enum):
    """Entity tags stored in the `entityType` attribute"""
    USER = "USER"
    POST = "POST"
    COMMENT = "COMMENT"
    FOLLOWER = "FOLLOWER"
    LIKE = "LIKE"
    ORDER = "ORDER"
    ORDER_ITEM = "ORDER_ITEM"


# Children that can live under a USER# partition
CHILD_TYPES = [
    EntityType.POST,
    EntityType.COMMENT,
    EntityType.FOLLOWER,
    EntityType.LIKE,
    EntityType.ORDER,
    EntityType.ORDER_ITEM,
]


def compose(*parts: str) -> str:
    """Join key parts with the key separator."""
    return KEY_SEPARATOR.join(str(part) for part in parts)


def user_pk(user_id: str) -> str:
    return compose(EntityType.USER.value, user_id)


def user_sk(user_id: str) -> str:
    return compose(EntityType.USER.value, user_id)


def child_sk(entity_type: EntityType, discriminator: str, entity_id: str) -> str:
    """
    Sort key for an item stored under a user partition.

    Args:
        entity_type: Child entity type (POST, ORDER, ...)
        discriminator: Sortable value, usually an ISO timestamp
        entity_id: Child identifier, keeps the key unique per partition

    Returns:
        Sort key such as ORDER#2024-01-01T10:00:00Z#order-00000001
    """
    return compose(entity_type.value, discriminator, entity_id)


def sk_prefix(entity_type: EntityType) -> str:
    """Prefix used with begins_with to select one entity type in a partition."""
    return entity_type.value + KEY_SEPARATOR


def user_comments_gsi1pk(post_author_user_id: str) -> str:
    return compose("USER_COMMENTS", post_author_user_id)


def user_order_items_gsi1pk(user_id: str) -> str:
    return compose("USER_ORDER_ITEMS", user_id)


def users_gsi1pk() -> str:
    """All users share one GSI1 partition, sorted by status."""
    return EntityType.USER.value


def user_status_prefix(status: str) -> str:
    return status + KEY_SEPARATOR


def order_shard(order_id: str, shard_count: int = ORDER_SHARD_COUNT) -> int:
    """Stable shard number for an order id."""
    if shard_count < 1:
        raise ValueError(f"shard_count must be >= 1, got {shard_count}")
    digest = hashlib.md5(order_id.encode("utf-8")).hexdigest()
    return int(digest, 16) % shard_count


def order_shard_gsi1pk(shard_id: int) -> str:
    return compose(EntityType.ORDER.value, shard_id)


def all_order_shard_keys(shard_count: int = ORDER_SHARD_COUNT) -> List[str]:
    """Every GSI1 partition an order can land in."""
    return [order_shard_gsi1pk(shard) for shard in range(shard_count)]


@dataclass(frozen=True)
class Gsi1Convention:
    """How an entity type fills the overloaded GSI1 attributes"""
    pk_prefix: str
    pk_source: Optional[str]    # entity field appended to the prefix, 'shard', or None for a constant
    sk_sources: Tuple[str, ...]  # entity fields joined into GSI1SK
    description: str = ""


# Static per-type mapping. Types without an entry are not projected into GSI1.
GSI1_CONVENTIONS: Dict[EntityType, Gsi1Convention] = {
    EntityType.USER: Gsi1Convention(
        pk_prefix=EntityType.USER.value,
        pk_source=None,
        sk_sources=("status", "userId"),
        description="All users, selectable by status prefix",
    ),
    EntityType.COMMENT: Gsi1Convention(
        pk_prefix="USER_COMMENTS",
        pk_source="postAuthorUserId",
        sk_sources=("createdAt",),
        description="All comments written on a user's posts",
    ),
    EntityType.ORDER: Gsi1Convention(
        pk_prefix=EntityType.ORDER.value,
        pk_source="shard",
        sk_sources=("orderDate",),
        description="All orders in a date range, sharded to spread writes",
    ),
    EntityType.ORDER_ITEM: Gsi1Convention(
        pk_prefix="USER_ORDER_ITEMS",
        pk_source="userId",
        sk_sources=("createdAt",),
        description="All order items bought by a user",
    ),
}


def gsi1_keys(entity_type: EntityType, attributes: Dict[str, str]) -> Optional[Dict[str, str]]:
    """
    Build GSI1PK/GSI1SK for an entity following its static convention.

    Args:
        entity_type: Type of the entity being written
        attributes: Entity attributes (camelCase, as stored)

    Returns:
        Dict with GSI1PK and GSI1SK, or None when the type is not in GSI1
    """
    convention = GSI1_CONVENTIONS.get(entity_type)
    if convention is None:
        return None

    if convention.pk_source is None:
        pk = convention.pk_prefix
    elif convention.pk_source == "shard":
        pk = compose(convention.pk_prefix, order_shard(attributes["orderId"]))
    else:
        pk = compose(convention.pk_prefix, attributes[convention.pk_source])

    sk = compose(*(attributes[source] for source in convention.sk_sources))
    return {"GSI1PK": pk, "GSI1SK": sk}
