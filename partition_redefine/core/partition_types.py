"""
Partition Types Module

Defines the partitioning methods, boundary definitions and the target
partition specification used by the conversion engine.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from .errors import InvalidSpecification


class PartitionMethod(str, Enum):
    """Supported partitioning methods"""
    RANGE = "RANGE"
    LIST = "LIST"
    HASH = "HASH"
    INTERVAL = "INTERVAL"
    REFERENCE = "REFERENCE"
    AUTO_LIST = "AUTO_LIST"

    @property
    def base_method(self) -> str:
        """Get the keyword used in the PARTITION BY clause"""
        return METHOD_CONFIG[self].base_method

    @property
    def value_clause(self) -> Optional[str]:
        """Get the boundary value clause keyword (None for HASH/REFERENCE)"""
        return METHOD_CONFIG[self].value_clause

    @property
    def allows_empty_boundaries(self) -> bool:
        """Check if the method accepts zero initial boundaries"""
        return METHOD_CONFIG[self].allows_empty_boundaries

    @property
    def allowed_as_subpartition(self) -> bool:
        """Check if the method can be used for subpartitioning"""
        return METHOD_CONFIG[self].allowed_as_subpartition


class BoundaryLevel(str, Enum):
    """Level of a boundary definition"""
    PARTITION = "PARTITION"
    SUBPARTITION = "SUBPARTITION"


@dataclass(frozen=True)
class MethodConfig:
    """Generation metadata for a partitioning method"""
    base_method: str
    value_clause: Optional[str]
    allows_empty_boundaries: bool
    allowed_as_subpartition: bool


# Method configurations
METHOD_CONFIG = {
    PartitionMethod.RANGE: MethodConfig(
        base_method="RANGE",
        value_clause="VALUES LESS THAN",
        allows_empty_boundaries=False,
        allowed_as_subpartition=True,
    ),
    PartitionMethod.LIST: MethodConfig(
        base_method="LIST",
        value_clause="VALUES",
        allows_empty_boundaries=False,
        allowed_as_subpartition=True,
    ),
    PartitionMethod.HASH: MethodConfig(
        base_method="HASH",
        value_clause=None,
        allows_empty_boundaries=True,
        allowed_as_subpartition=True,
    ),
    # automatic range: RANGE with an INTERVAL clause
    PartitionMethod.INTERVAL: MethodConfig(
        base_method="RANGE",
        value_clause="VALUES LESS THAN",
        allows_empty_boundaries=False,
        allowed_as_subpartition=False,
    ),
    PartitionMethod.REFERENCE: MethodConfig(
        base_method="REFERENCE",
        value_clause=None,
        allows_empty_boundaries=False,
        allowed_as_subpartition=False,
    ),
    PartitionMethod.AUTO_LIST: MethodConfig(
        base_method="LIST",
        value_clause="VALUES",
        allows_empty_boundaries=True,
        allowed_as_subpartition=False,
    ),
}

DEFAULT_INTERVAL_EXPRESSION = "NUMTOYMINTERVAL(1, 'MONTH')"


@dataclass(frozen=True)
class PartitionSpec:
    """Target partitioning scheme (single-level or composite)"""
    partition_method: Optional[PartitionMethod]
    partition_key: Tuple[str, ...]
    subpartition_method: Optional[PartitionMethod] = None
    subpartition_key: Tuple[str, ...] = ()
    is_composite: bool = False
    requires_primary_key: bool = True
    interval_expression: str = DEFAULT_INTERVAL_EXPRESSION
    hash_partition_count: Optional[int] = None

    def __post_init__(self):
        # lists are accepted for convenience, stored as tuples
        object.__setattr__(self, "partition_key", _as_key(self.partition_key))
        object.__setattr__(self, "subpartition_key", _as_key(self.subpartition_key))

    @classmethod
    def single_level(cls, method: PartitionMethod, key: Sequence[str], **kwargs) -> "PartitionSpec":
        """Build a single-level specification"""
        return cls(partition_method=method, partition_key=tuple(key), **kwargs)

    @classmethod
    def composite(
        cls,
        method: PartitionMethod,
        key: Sequence[str],
        subpartition_method: PartitionMethod,
        subpartition_key: Sequence[str],
        **kwargs,
    ) -> "PartitionSpec":
        """Build a composite (two-level) specification"""
        return cls(
            partition_method=method,
            partition_key=tuple(key),
            subpartition_method=subpartition_method,
            subpartition_key=tuple(subpartition_key),
            is_composite=True,
            **kwargs,
        )

    @property
    def method_label(self) -> str:
        """Get a label like 'RANGE' or 'HASH-RANGE'"""
        label = self.partition_method.value if self.partition_method else "?"
        if self.is_composite and self.subpartition_method:
            label = f"{label}-{self.subpartition_method.value}"
        return label


@dataclass(frozen=True)
class BoundaryDefinition:
    """One partition or subpartition definition"""
    name: str
    boundary_value: Optional[str] = None
    target_container: Optional[str] = None
    level: BoundaryLevel = BoundaryLevel.PARTITION

    @classmethod
    def partition(cls, name: str, boundary_value: Optional[str] = None,
                  target_container: Optional[str] = None) -> "BoundaryDefinition":
        return cls(name, boundary_value, target_container, BoundaryLevel.PARTITION)

    @classmethod
    def subpartition(cls, name: str, boundary_value: Optional[str] = None,
                     target_container: Optional[str] = None) -> "BoundaryDefinition":
        return cls(name, boundary_value, target_container, BoundaryLevel.SUBPARTITION)

    @property
    def is_subpartition(self) -> bool:
        return self.level == BoundaryLevel.SUBPARTITION


@dataclass(frozen=True)
class TableId:
    """Table identity (owner + name)"""
    owner: str
    name: str

    @property
    def qualified(self) -> str:
        """Get the OWNER.NAME form used in statements"""
        return f"{self.owner}.{self.name}"

    def renamed(self, name: str) -> "TableId":
        """Get the identity of a sibling object in the same schema"""
        return TableId(self.owner, name)

    def __str__(self) -> str:
        return self.qualified


def _as_key(key) -> Tuple[str, ...]:
    if key is None:
        return ()
    if isinstance(key, str):
        return tuple(part.strip() for part in key.split(",") if part.strip())
    return tuple(key)


def validate(spec: PartitionSpec) -> None:
    """
    Validate a partition specification

    Must be called before any DDL generation.

    Args:
        spec: Specification to validate

    Raises:
        InvalidSpecification: If the specification is malformed
    """
    from ..utils.validators import SpecValidator

    is_valid, message = SpecValidator.validate_partition_spec(spec)
    if not is_valid:
        raise InvalidSpecification(message)


def count_levels(boundaries: Sequence[BoundaryDefinition]) -> Tuple[int, int]:
    """Get (partition count, subpartition count) of a boundary sequence"""
    subpartitions = sum(1 for b in boundaries if b.is_subpartition)
    return len(boundaries) - subpartitions, subpartitions


# Methods usable at the subpartition level
SUBPARTITION_METHODS = frozenset(m for m, c in METHOD_CONFIG.items() if c.allowed_as_subpartition)
