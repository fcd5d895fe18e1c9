"""
Abstract design interface for the DynamoDB schema comparison.

Supports: Relational (one table per entity) and SingleTable (composite keys).
Every read returns a Measurement so both designs can be compared side by side.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from core.config import BenchmarkConfig
from core.entities import Entity, parse_items
from core.keys import EntityType
from core.schema import all_table_definitions, key_attributes
from utils.cost_tracker import DynamoDBCostModel
from utils.metrics import Timer


logger = logging.getLogger(__name__)


class DesignType(Enum):
    """Schema designs under comparison"""
    RELATIONAL = "Relational"
    SINGLE_TABLE = "SingleTable"


class OperationType(Enum):
    """DynamoDB request shape behind a measurement"""
    GET_ITEM = "GetItem"
    QUERY = "Query"
    SCAN = "Scan"
    BATCH_WRITE = "BatchWrite"
    MULTI_REQUEST = "MultiRequest"
    PARALLEL_QUERY = "ParallelQuery"


WRITE_OPERATIONS = {OperationType.BATCH_WRITE}


@dataclass
class Outcome:
    """What a measured operation produced, before timing is attached"""
    items: List[Entity] = field(default_factory=list)
    scanned_count: int = 0
    capacity_units: float = 0.0
    request_count: int = 1
    requested_count: int = 0
    unprocessed_count: int = 0
    failed_count: int = 0
    data: Any = None

    @classmethod
    def from_response(cls, response: Dict[str, Any], entity_type: Optional[EntityType] = None) -> "Outcome":
        """
        Build an outcome from a single GetItem/Query/Scan response.

        Args:
            response: boto3 resource-layer response
            entity_type: Type of the items when they carry no entityType tag
        """
        if 'Item' in response or 'Items' not in response:
            raw_items = [response['Item']] if response.get('Item') else []
        else:
            raw_items = response.get('Items', [])

        return cls(
            items=parse_items(raw_items, entity_type),
            scanned_count=response.get('ScannedCount', len(raw_items)),
            capacity_units=capacity_units(response.get('ConsumedCapacity')),
        )

    def merge(self, other: "Outcome"):
        """Accumulate another request's outcome into this one."""
        self.items.extend(other.items)
        self.scanned_count += other.scanned_count
        self.capacity_units += other.capacity_units
        self.request_count += other.request_count


@dataclass
class Measurement:
    """Standardized measurement across both designs"""
    test_name: str
    design: DesignType
    operation: OperationType
    duration_ms: float
    success: bool
    start_time: float
    end_time: float
    item_count: int = 0
    scanned_count: int = 0
    request_count: int = 0
    rcu_consumed: float = 0.0
    wcu_consumed: float = 0.0
    used_index: bool = False
    index_name: Optional[str] = None
    unprocessed_count: int = 0
    failed_count: int = 0
    estimated_cost: float = 0.0
    error: Optional[str] = None
    items: List[Entity] = field(default_factory=list, repr=False)
    data: Any = field(default=None, repr=False)

    @property
    def inserted_count(self) -> int:
        """Items actually persisted by a batch write."""
        return max(self.item_count - self.unprocessed_count - self.failed_count, 0)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation (parsed entities are left out)."""
        return {
            'testName': self.test_name,
            'design': self.design.value,
            'operation': self.operation.value,
            'durationMs': round(self.duration_ms, 3),
            'success': self.success,
            'error': self.error,
            'startTime': self.start_time,
            'endTime': self.end_time,
            'itemCount': self.item_count,
            'scannedCount': self.scanned_count,
            'requestCount': self.request_count,
            'rcuConsumed': self.rcu_consumed,
            'wcuConsumed': self.wcu_consumed,
            'usedIndex': self.used_index,
            'indexName': self.index_name,
            'unprocessedCount': self.unprocessed_count,
            'failedCount': self.failed_count,
            'insertedCount': self.inserted_count if self.operation in WRITE_OPERATIONS else None,
            'estimatedCost': self.estimated_cost,
        }


@dataclass
class InsertSummary:
    """Outcome of loading one table"""
    table_name: str
    measurement: Measurement

    @property
    def requested(self) -> int:
        return self.measurement.item_count

    @property
    def inserted(self) -> int:
        return self.measurement.inserted_count

    @property
    def unprocessed(self) -> int:
        return self.measurement.unprocessed_count

    @property
    def failed(self) -> int:
        return self.measurement.failed_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tableName': self.table_name,
            'design': self.measurement.design.value,
            'requested': self.requested,
            'inserted': self.inserted,
            'unprocessed': self.unprocessed,
            'failed': self.failed,
            'durationMs': round(self.measurement.duration_ms, 3),
            'wcuConsumed': self.measurement.wcu_consumed,
        }


def capacity_units(consumed: Any) -> float:
    """Total CapacityUnits from a ConsumedCapacity dict or list."""
    if not consumed:
        return 0.0
    if isinstance(consumed, list):
        return sum(capacity_units(entry) for entry in consumed)
    return float(consumed.get('CapacityUnits') or 0.0)


def chunked(items: List[Any], size: int) -> Iterator[List[Any]]:
    """Split a list into consecutive chunks of at most `size` items."""
    for start in range(0, len(items), size):
        yield items[start:start + size]


class Design(ABC):
    """
    Abstract base class for the two schema designs.

    Subclasses build key material for each access pattern; this class owns
    the client, timing, capacity accounting and batch writes.
    """

    design_type: DesignType = None

    def __init__(self, config: BenchmarkConfig, resource=None):
        self.config = config
        self.resource = resource or boto3.resource(
            'dynamodb',
            region_name=config.region,
            endpoint_url=config.endpoint_url,
        )
        # The resource's client accepts native Python types like the Table API
        self.client = self.resource.meta.client
        self.cost_model = DynamoDBCostModel(region=config.region)
        logger.info(f"Initializing {self.__class__.__name__} in region {config.region}")

    # ------------------------------------------------------------------
    # Access patterns
    # ------------------------------------------------------------------

    @abstractmethod
    def get_user(self, user_id: str) -> Measurement:
        """Point lookup of one user. Missing users are an empty success."""

    @abstractmethod
    def get_children(self, user_id: str, child_type: EntityType) -> Measurement:
        """All items of `child_type` owned by a user."""

    @abstractmethod
    def get_all_of_type(self, entity_type: EntityType) -> Measurement:
        """Every item of one entity type, regardless of owner."""

    @abstractmethod
    def get_user_screen_data(self, user_id: str) -> Measurement:
        """Everything needed to render a user's profile screen."""

    @abstractmethod
    def get_comments_on_user_posts(self, user_id: str) -> Measurement:
        """Comments written on any of a user's posts."""

    @abstractmethod
    def get_orders_by_date_range(self, start_date: str, end_date: str) -> Measurement:
        """All orders with start_date <= orderDate <= end_date."""

    @abstractmethod
    def get_users_by_status(self, status: str) -> Measurement:
        """Every user whose status matches."""

    @abstractmethod
    def get_users_by_email(self, email: str) -> Measurement:
        """Users with the given email address (no index on email in either design)."""

    @abstractmethod
    def get_user_order_items(self, user_id: str) -> Measurement:
        """Every order item bought by a user, across all of their orders."""

    @abstractmethod
    def get_order_items_by_supplier(self, supplier_id: str, start_date: str, end_date: str) -> Measurement:
        """Order items of one supplier created between start_date and end_date."""

    # ------------------------------------------------------------------
    # Data management
    # ------------------------------------------------------------------

    @abstractmethod
    def insert_dataset(self, dataset) -> List["InsertSummary"]:
        """Write a generated dataset; one summary per target table."""

    @abstractmethod
    def table_names(self) -> List[str]:
        """Tables owned by this design."""

    def key_attributes(self, table_name: str) -> List[str]:
        """Primary key attribute names of one of this design's tables."""
        return key_attributes(all_table_definitions(self.config)[table_name])

    def clear_all_data(self) -> int:
        """
        Delete every item from this design's tables.

        Returns:
            Number of deleted items
        """
        deleted = 0
        for table_name in self.table_names():
            print(f"    - Clearing table: {table_name}")
            deleted += self.clear_table(table_name, self.key_attributes(table_name))
        return deleted

    def get_table_item_count(self, table_name: str) -> int:
        """
        Approximate item count from DescribeTable.

        Note: DynamoDB refreshes ItemCount roughly every six hours.
        """
        try:
            response = self.client.describe_table(TableName=table_name)
            return response['Table'].get('ItemCount', 0)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error getting item count for table {table_name}: {e}")
            return 0

    def log_table_item_counts(self):
        for table_name in self.table_names():
            count = self.get_table_item_count(table_name)
            print(f"  Table {table_name}: {count:,} items")

    # ------------------------------------------------------------------
    # Measurement helpers
    # ------------------------------------------------------------------

    def measure_operation(
        self,
        operation: Callable[[], Outcome],
        test_name: str,
        operation_type: OperationType,
        used_index: bool = False,
        index_name: Optional[str] = None,
    ) -> Measurement:
        """
        Time an operation and turn its outcome into a Measurement.

        Request failures are recorded, never raised or retried.
        """
        start_time = time.time()
        timer = Timer()

        try:
            with timer:
                outcome = operation()
        except (ClientError, BotoCoreError) as e:
            message = str(e)
            logger.error(f"❌ {test_name} failed: {message}")
            if 'credentials' in message.lower():
                logger.error("💡 Make sure your AWS credentials are configured: aws configure")

            return Measurement(
                test_name=test_name,
                design=self.design_type,
                operation=operation_type,
                duration_ms=timer.get_elapsed_ms(),
                success=False,
                start_time=start_time,
                end_time=time.time(),
                used_index=used_index,
                index_name=index_name,
                error=message,
            )

        is_write = operation_type in WRITE_OPERATIONS
        rcu = 0.0 if is_write else outcome.capacity_units
        wcu = outcome.capacity_units if is_write else 0.0

        return Measurement(
            test_name=test_name,
            design=self.design_type,
            operation=operation_type,
            duration_ms=timer.get_elapsed_ms(),
            success=True,
            start_time=start_time,
            end_time=time.time(),
            item_count=outcome.requested_count if is_write else len(outcome.items),
            scanned_count=outcome.scanned_count,
            request_count=outcome.request_count,
            rcu_consumed=rcu,
            wcu_consumed=wcu,
            used_index=used_index,
            index_name=index_name,
            unprocessed_count=outcome.unprocessed_count,
            failed_count=outcome.failed_count,
            estimated_cost=self.cost_model.request_cost(rcu, wcu),
            items=outcome.items,
            data=outcome.data,
        )

    def batch_write_with_chunking(self, table_name: str, items: List[Dict[str, Any]], test_name: str) -> Measurement:
        """
        Write items with BatchWriteItem in chunks of config.batch_size.

        Unprocessed items reported by DynamoDB are counted but not
        resubmitted; a chunk whose call fails is counted as failed and the
        remaining chunks are still written.
        """
        def operation() -> Outcome:
            outcome = Outcome(request_count=0, requested_count=len(items))
            batches = list(chunked(items, self.config.batch_size))

            for number, batch in enumerate(batches, start=1):
                requests = [{'PutRequest': {'Item': item}} for item in batch]
                try:
                    response = self.client.batch_write_item(
                        RequestItems={table_name: requests},
                        ReturnConsumedCapacity='TOTAL',
                    )
                except (ClientError, BotoCoreError) as e:
                    logger.error(f"❌ Batch {number}/{len(batches)} for {table_name} failed: {e}")
                    outcome.failed_count += len(batch)
                    continue

                outcome.request_count += 1
                outcome.capacity_units += capacity_units(response.get('ConsumedCapacity'))

                unprocessed = len(response.get('UnprocessedItems', {}).get(table_name, []))
                if unprocessed:
                    logger.warning(f"⚠️  Batch {number}/{len(batches)} for {table_name}: {unprocessed} unprocessed items")
                    outcome.unprocessed_count += unprocessed
                else:
                    logger.debug(f"Batch {number}/{len(batches)} for {table_name}: {len(batch)} items written")

            persisted = len(items) - outcome.unprocessed_count - outcome.failed_count
            logger.info(
                f"📊 {table_name}: {persisted} written, "
                f"{outcome.unprocessed_count} unprocessed, {outcome.failed_count} failed"
            )
            return outcome

        return self.measure_operation(operation, test_name, OperationType.BATCH_WRITE)

    def clear_table(self, table_name: str, key_names: List[str]) -> int:
        """
        Scan a table for its keys and batch-delete everything found.

        Returns:
            Items actually deleted; unprocessed deletes are subtracted, not retried
        """
        names = {f"#k{index}": name for index, name in enumerate(key_names)}
        scan_kwargs = {
            'TableName': table_name,
            'ProjectionExpression': ', '.join(names.keys()),
            'ExpressionAttributeNames': names,
        }

        keys = []
        while True:
            response = self.client.scan(**scan_kwargs)
            keys.extend({name: item[name] for name in key_names} for item in response.get('Items', []))
            if 'LastEvaluatedKey' not in response:
                break
            scan_kwargs['ExclusiveStartKey'] = response['LastEvaluatedKey']

        if not keys:
            print("      - Table is already empty")
            return 0

        print(f"      - Found {len(keys)} items to delete")
        unprocessed = 0
        for batch in chunked(keys, self.config.batch_size):
            response = self.client.batch_write_item(
                RequestItems={table_name: [{'DeleteRequest': {'Key': key}} for key in batch]}
            )
            unprocessed += len(response.get('UnprocessedItems', {}).get(table_name, []))

        deleted = len(keys) - unprocessed
        if unprocessed:
            logger.warning(f"⚠️  {table_name}: {unprocessed} deletes left unprocessed")
            print(f"      - Deleted {deleted} items, {unprocessed} left behind")
        else:
            print(f"      - Deleted {deleted} items")
        return deleted


class DesignFactory:
    """
    Factory for creating design instances.
    """

    _designs = {}

    @classmethod
    def register(cls, design_type: DesignType, design_class):
        """Register a design implementation"""
        cls._designs[design_type] = design_class

    @classmethod
    def create(cls, design_type: DesignType, config: BenchmarkConfig, resource=None) -> Design:
        """
        Create a design instance.

        Raises:
            ValueError: If the design type is not registered
        """
        if design_type not in cls._designs:
            available = ', '.join([dt.value for dt in cls._designs.keys()])
            raise ValueError(
                f"Design '{design_type.value}' not registered. "
                f"Available designs: {available}"
            )

        return cls._designs[design_type](config, resource=resource)

    @classmethod
    def list_designs(cls) -> List[DesignType]:
        return list(cls._designs.keys())
