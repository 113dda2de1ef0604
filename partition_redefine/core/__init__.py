# Core module

from .partition_types import (
    PartitionMethod,
    BoundaryLevel,
    PartitionSpec,
    BoundaryDefinition,
    TableId,
    validate,
)

from .errors import (
    ConversionError,
    InvalidSpecification,
    GenerationFailure,
    PreconditionFailure,
    DependentObjectCopyFailure,
    LoadFailure,
    ConvergenceIncomplete,
    ConstraintValidationFailure,
    CutoverFailure,
    CleanupFailure,
)

from .config import EngineConfig
from .conversion_options import ConversionOptions, Strategy
from .conversion_run import ConversionRun, RunState, StepOutcome
from .ddl_generator import generate, build_layout
from .capability import CapabilityEvaluator, CapabilityReport
from .change_tracker import ChangeTracker, ModifiedSinceChangeTracker
from .orchestrator import ConversionOrchestrator

__all__ = [
    # Specification Model
    'PartitionMethod',
    'BoundaryLevel',
    'PartitionSpec',
    'BoundaryDefinition',
    'TableId',
    'validate',
    # Errors
    'ConversionError',
    'InvalidSpecification',
    'GenerationFailure',
    'PreconditionFailure',
    'DependentObjectCopyFailure',
    'LoadFailure',
    'ConvergenceIncomplete',
    'ConstraintValidationFailure',
    'CutoverFailure',
    'CleanupFailure',
    # Core Components
    'EngineConfig',
    'ConversionOptions',
    'Strategy',
    'ConversionRun',
    'RunState',
    'StepOutcome',
    'generate',
    'build_layout',
    'CapabilityEvaluator',
    'CapabilityReport',
    'ChangeTracker',
    'ModifiedSinceChangeTracker',
    'ConversionOrchestrator',
]
