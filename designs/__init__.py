"""
DynamoDB schema designs under comparison.

Available designs:
- Relational (one table per entity type)
- SingleTable (all entities in one table)
"""

from core.design import Design, DesignFactory, DesignType

# Import design implementations
from .relational import RelationalDesign
from .single_table import SingleTableDesign

# Register designs with factory
DesignFactory.register(DesignType.RELATIONAL, RelationalDesign)
DesignFactory.register(DesignType.SINGLE_TABLE, SingleTableDesign)

__all__ = [
    'Design',
    'DesignType',
    'DesignFactory',
    'RelationalDesign',
    'SingleTableDesign',
]
