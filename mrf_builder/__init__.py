"""
Out-of-Network MRF Builder

Validates per-transaction claim records, aggregates allowed amounts by
billing code and provider, and assembles machine-readable files of
out-of-network allowed amounts.
"""

from .models import AggregatedEntry, BatchValidationResult, Claim, ProviderRef, UpdateResult
from .mrf_models import MrfDocument
from .config import PlanInfo, ReportingConfig, ReportingEntity, load_config
from .exceptions import (
    BatchParseError,
    EmptyInputError,
    FieldValidationError,
    IndexOutOfRangeError,
    MrfBuilderError,
)
from .validator import ClaimValidator, validate_claim, validate_claims
from .grouping import group_claims
from .aggregator import aggregate_bucket
from .assembler import assemble_document
from .builder import MrfBuilder, write_document
from .session import ClaimsSession

__version__ = "1.0.0"
__all__ = [
    "AggregatedEntry",
    "BatchValidationResult",
    "Claim",
    "ProviderRef",
    "UpdateResult",
    "MrfDocument",
    "PlanInfo",
    "ReportingConfig",
    "ReportingEntity",
    "load_config",
    "BatchParseError",
    "EmptyInputError",
    "FieldValidationError",
    "IndexOutOfRangeError",
    "MrfBuilderError",
    "ClaimValidator",
    "validate_claim",
    "validate_claims",
    "group_claims",
    "aggregate_bucket",
    "assemble_document",
    "MrfBuilder",
    "write_document",
    "ClaimsSession",
]
