"""
Cost tracking for the DynamoDB design comparison.

Tracks costs for:
- Data loading (write request units)
- Query execution (read request units)
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List


class CostCategory(Enum):
    """Categories of costs"""
    DATA_LOADING = "data_loading"
    QUERY_EXECUTION = "query_execution"


@dataclass
class CostItem:
    """Single cost item"""
    category: CostCategory
    description: str
    amount: float
    currency: str = "USD"
    unit: str = ""  # e.g., "1,234 RRU"
    quantity: float = 1.0
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_cost(self) -> float:
        """Total cost for this item"""
        return self.amount * self.quantity


@dataclass
class BenchmarkCost:
    """Cost summary for one design in a benchmark run"""
    design_name: str
    items: List[CostItem] = field(default_factory=list)
    currency: str = "USD"
    region: str = "us-east-1"

    def add_item(self, item: CostItem):
        """Add a cost item"""
        self.items.append(item)

    def get_total_by_category(self, category: CostCategory) -> float:
        """Get total cost for a category"""
        return sum(
            item.total_cost for item in self.items
            if item.category == category
        )

    def get_total(self) -> float:
        """Get total cost"""
        return sum(item.total_cost for item in self.items)

    def get_breakdown(self) -> Dict[str, float]:
        """Get cost breakdown by category"""
        breakdown = {}
        for category in CostCategory:
            total = self.get_total_by_category(category)
            if total > 0:
                breakdown[category.value] = total
        return breakdown

    def get_summary(self) -> Dict[str, Any]:
        """Get cost summary"""
        return {
            'design': self.design_name,
            'total': self.get_total(),
            'currency': self.currency,
            'region': self.region,
            'breakdown': self.get_breakdown(),
            'items': len(self.items)
        }


class DynamoDBCostModel:
    """
    Cost model for DynamoDB on-demand capacity.

    Based on the capacity units DynamoDB reports back
    (ReturnConsumedCapacity=TOTAL), not on estimated item sizes.
    """

    def __init__(self, region: str = "us-east-1", currency: str = "USD"):
        self.region = region
        self.currency = currency
        self.pricing = self._load_pricing()

    def _load_pricing(self) -> Dict[str, Any]:
        """Load DynamoDB pricing"""
        # US East (N. Virginia) on-demand pricing
        return {
            'write_request_per_million': 1.25,  # $1.25 per million write request units
            'read_request_per_million': 0.25,   # $0.25 per million read request units
        }

    def read_cost(self, rcu: float) -> float:
        return (rcu / 1_000_000.0) * self.pricing['read_request_per_million']

    def write_cost(self, wcu: float) -> float:
        return (wcu / 1_000_000.0) * self.pricing['write_request_per_million']

    def request_cost(self, rcu: float, wcu: float) -> float:
        """Estimated USD cost of a single measured operation."""
        return self.read_cost(rcu) + self.write_cost(wcu)

    def calculate_data_loading_cost(self, num_items: int, wcu: float) -> CostItem:
        """
        Calculate cost of loading data.

        Args:
            num_items: Items written
            wcu: Write capacity units reported by DynamoDB
        """
        return CostItem(
            category=CostCategory.DATA_LOADING,
            description=f"Data loading to DynamoDB ({num_items:,} items, {wcu:,.1f} WRU)",
            amount=self.write_cost(wcu),
            currency=self.currency,
            unit=f"{wcu:,.1f} write request units",
            metadata={'num_items': num_items, 'wcu': wcu}
        )

    def calculate_query_cost(self, num_queries: int, rcu: float) -> CostItem:
        """
        Calculate cost of executing queries.

        Args:
            num_queries: Measured read operations
            rcu: Read capacity units reported by DynamoDB
        """
        return CostItem(
            category=CostCategory.QUERY_EXECUTION,
            description=f"Query execution on DynamoDB ({num_queries:,} operations, {rcu:,.1f} RRU)",
            amount=self.read_cost(rcu),
            currency=self.currency,
            unit=f"{rcu:,.1f} read request units",
            metadata={'num_queries': num_queries, 'rcu': rcu}
        )


def summarize_costs(
    design_name: str,
    reads: List[Any],
    writes: List[Any],
    region: str = "us-east-1",
) -> BenchmarkCost:
    """
    Roll the measurements of one design up into a BenchmarkCost.

    Args:
        design_name: Design label (Relational / SingleTable)
        reads: Read measurements of that design
        writes: Batch write measurements of that design
        region: AWS region used for pricing
    """
    model = DynamoDBCostModel(region=region)
    cost = BenchmarkCost(design_name=design_name, region=region)

    if writes:
        cost.add_item(model.calculate_data_loading_cost(
            sum(m.inserted_count for m in writes),
            sum(m.wcu_consumed for m in writes),
        ))
    if reads:
        cost.add_item(model.calculate_query_cost(
            len(reads),
            sum(m.rcu_consumed for m in reads),
        ))

    return cost
