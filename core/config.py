"""
Benchmark configuration.

Values come from environment variables (optionally from a .env file) and
can be overridden from the CLI. The resulting BenchmarkConfig is passed
explicitly to the designs and to the runner.
"""

import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

import boto3
from dotenv import load_dotenv


# DynamoDB BatchWriteItem accepts at most 25 requests
MAX_BATCH_SIZE = 25


class ConfigurationError(Exception):
    """Raised when the benchmark cannot start (bad settings, no credentials)"""


@dataclass
class RelationalTables:
    """Table names for the multi-table design"""
    users: str = "users-relational"
    posts: str = "posts-relational"
    comments: str = "comments-relational"
    followers: str = "followers-relational"
    likes: str = "likes-relational"
    orders: str = "orders-relational"
    order_items: str = "order-items-relational"

    def all(self) -> List[str]:
        return [self.users, self.posts, self.comments, self.followers, self.likes, self.orders, self.order_items]


@dataclass
class BenchmarkConfig:
    """Everything the designs and the runner need to know"""
    region: str = "us-east-1"
    endpoint_url: Optional[str] = None
    relational_tables: RelationalTables = field(default_factory=RelationalTables)
    single_table_name: str = "single-table-social"
    batch_size: int = MAX_BATCH_SIZE

    # Data generation
    user_count: int = 5
    post_count: int = 20
    comment_count: int = 50
    like_count: int = 100
    order_count: int = 40
    order_item_count: int = 80
    seed: Optional[int] = None

    # Test execution
    test_user_count: int = 1
    iterations: int = 1

    # Output
    output_dir: str = "."

    @property
    def follower_count(self) -> int:
        # More follow edges than users gives realistic fan-in
        return max(self.user_count * 2, 10)

    def with_overrides(self, **overrides: Any) -> "BenchmarkConfig":
        """Copy with the non-None overrides applied."""
        values = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **values)

    def validate(self) -> List[str]:
        """
        Validate configuration values.

        Returns:
            List of issues, empty when the configuration is usable
        """
        issues = []

        if not self.region:
            issues.append("AWS region not configured")

        if not 1 <= self.batch_size <= MAX_BATCH_SIZE:
            issues.append(f"batch_size must be between 1 and {MAX_BATCH_SIZE} (got {self.batch_size})")

        if self.user_count < 1:
            issues.append("user_count must be at least 1")

        for name in ("post_count", "comment_count", "like_count", "order_count", "order_item_count"):
            if getattr(self, name) < 0:
                issues.append(f"{name} must not be negative")

        if self.comment_count > 0 and self.post_count == 0:
            issues.append("comments need at least one post")

        if self.like_count > 0 and self.post_count == 0:
            issues.append("likes need at least one post")

        if self.order_item_count > 0 and self.order_count == 0:
            issues.append("order items need at least one order")

        if self.test_user_count < 1:
            issues.append("test_user_count must be at least 1")

        if self.iterations < 1:
            issues.append("iterations must be at least 1")

        names = self.relational_tables.all() + [self.single_table_name]
        if len(set(names)) != len(names):
            issues.append("table names must be distinct")

        return issues

    def to_dict(self) -> Dict[str, Any]:
        return {
            'region': self.region,
            'endpoint_url': self.endpoint_url,
            'single_table': self.single_table_name,
            'relational_tables': self.relational_tables.all(),
            'batch_size': self.batch_size,
            'user_count': self.user_count,
            'post_count': self.post_count,
            'comment_count': self.comment_count,
            'like_count': self.like_count,
            'order_count': self.order_count,
            'order_item_count': self.order_item_count,
            'follower_count': self.follower_count,
            'test_user_count': self.test_user_count,
            'iterations': self.iterations,
            'seed': self.seed,
        }


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'") from None


def load_config(env_file: Optional[str] = None, **overrides: Any) -> BenchmarkConfig:
    """
    Build a BenchmarkConfig from the environment.

    Args:
        env_file: Optional path to a .env file (default: search from cwd)
        **overrides: Field values that win over the environment (None is ignored)

    Returns:
        BenchmarkConfig
    """
    load_dotenv(env_file)

    defaults = BenchmarkConfig()
    tables = RelationalTables(
        users=os.getenv('USERS_TABLE', defaults.relational_tables.users),
        posts=os.getenv('POSTS_TABLE', defaults.relational_tables.posts),
        comments=os.getenv('COMMENTS_TABLE', defaults.relational_tables.comments),
        followers=os.getenv('FOLLOWERS_TABLE', defaults.relational_tables.followers),
        likes=os.getenv('LIKES_TABLE', defaults.relational_tables.likes),
        orders=os.getenv('ORDERS_TABLE', defaults.relational_tables.orders),
        order_items=os.getenv('ORDER_ITEMS_TABLE', defaults.relational_tables.order_items),
    )

    config = BenchmarkConfig(
        region=os.getenv('AWS_REGION') or os.getenv('CDK_DEFAULT_REGION') or defaults.region,
        endpoint_url=os.getenv('DYNAMODB_ENDPOINT_URL') or None,
        relational_tables=tables,
        single_table_name=os.getenv('SINGLE_TABLE', defaults.single_table_name),
        batch_size=_env_int('BATCH_SIZE', defaults.batch_size),
        user_count=_env_int('USER_COUNT', defaults.user_count),
        post_count=_env_int('POST_COUNT', defaults.post_count),
        comment_count=_env_int('COMMENT_COUNT', defaults.comment_count),
        like_count=_env_int('LIKE_COUNT', defaults.like_count),
        order_count=_env_int('ORDER_COUNT', defaults.order_count),
        order_item_count=_env_int('ORDER_ITEM_COUNT', defaults.order_item_count),
        seed=_env_int('BENCHMARK_SEED', None),
        test_user_count=_env_int('TEST_USER_COUNT', defaults.test_user_count),
        iterations=_env_int('TEST_ITERATIONS', defaults.iterations),
        output_dir=os.getenv('OUTPUT_DIR', defaults.output_dir),
    )

    return config.with_overrides(**overrides)


def check_credentials(config: BenchmarkConfig, session: Optional[boto3.session.Session] = None):
    """
    Fail fast when no AWS credentials can be resolved.

    Raises:
        ConfigurationError: If the default credential chain finds nothing
    """
    session = session or boto3.session.Session(region_name=config.region)
    if session.get_credentials() is None:
        raise ConfigurationError(
            "No AWS credentials found. Run 'aws configure' or set "
            "AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY."
        )


def ensure_valid(config: BenchmarkConfig):
    """Raise ConfigurationError listing every validation issue."""
    issues = config.validate()
    if issues:
        raise ConfigurationError("Invalid configuration: " + "; ".join(issues))


def print_config(config: BenchmarkConfig):
    """Print current configuration"""
    print("=" * 80)
    print("CURRENT CONFIGURATION")
    print("=" * 80)

    print("\n🔧 DynamoDB:")
    print(f"   Region: {config.region}")
    print(f"   Endpoint: {config.endpoint_url or 'AWS default'}")
    print(f"   Single table: {config.single_table_name}")
    print(f"   Relational tables: {', '.join(config.relational_tables.all())}")
    print(f"   Batch size: {config.batch_size}")

    print("\n📦 Data generation:")
    print(f"   Users: {config.user_count:,}")
    print(f"   Posts: {config.post_count:,}")
    print(f"   Comments: {config.comment_count:,}")
    print(f"   Likes: {config.like_count:,}")
    print(f"   Orders: {config.order_count:,}")
    print(f"   Order items: {config.order_item_count:,}")
    print(f"   Followers: {config.follower_count:,}")
    print(f"   Seed: {config.seed if config.seed is not None else 'random'}")

    print("\n📊 Benchmarks:")
    print(f"   Test users: {config.test_user_count}")
    print(f"   Iterations: {config.iterations}")
    print(f"   Output directory: {config.output_dir}")

    print("\n" + "=" * 80)
