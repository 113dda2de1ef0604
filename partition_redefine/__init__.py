# Partition Redefine - online table re-partitioning engine for Oracle

from .core.api import (
    cleanup_names,
    convert_single_to_composite,
    convert_to_composite,
    convert_to_single_level,
    generate_partition_ddl,
    is_online_capable,
    run_conversion,
)
from .core.conversion_options import ConversionOptions, Strategy
from .core.partition_types import BoundaryDefinition, PartitionMethod, PartitionSpec, TableId

__version__ = "1.0.0"

__all__ = [
    'convert_to_single_level',
    'convert_to_composite',
    'convert_single_to_composite',
    'is_online_capable',
    'run_conversion',
    'cleanup_names',
    'generate_partition_ddl',
    'ConversionOptions',
    'Strategy',
    'BoundaryDefinition',
    'PartitionMethod',
    'PartitionSpec',
    'TableId',
]
