"""
Reporting configuration for MRF generation.

Describes how claims are grouped and aggregated and who the document is
reported for. Defaults match the reporting entity and plan the claims
processor has historically published under.
"""

import json
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .grouping import validate_key_fields
from .mrf_models import PLAN_ID_TYPES, PLAN_MARKET_TYPES, TIN_TYPES

DEFAULT_GROUPING_FIELDS = ["procedure_code", "billing_code_type", "service_code"]

# Two-level variant: one entry per procedure and provider
PROVIDER_GROUPING_FIELDS = ["billing_code_type", "procedure_code", "npi"]

RATE_FIELDS = ("negotiated_rate", "billed_charge")


class _ConfigModel(BaseModel):
    # Accept both groupingFields and grouping_fields
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReportingEntity(_ConfigModel):
    """Entity publishing the file."""

    name: str = Field("Clearest Health", min_length=1)
    type: str = Field("health insurance issuer", min_length=1)


class PlanInfo(_ConfigModel):
    """Plan the file is reported for."""

    name: Optional[str] = Field(
        None,
        description="Plan name; falls back to the first claim's plan name when omitted"
    )
    id_type: Optional[str] = "EIN"
    id: Optional[str] = "12-3456789"
    market_type: Optional[str] = "group"

    @field_validator("id_type")
    @classmethod
    def validate_id_type(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in PLAN_ID_TYPES:
            raise ValueError(f"Plan ID type must be one of {', '.join(PLAN_ID_TYPES)}")
        return v

    @field_validator("market_type")
    @classmethod
    def validate_market_type(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in PLAN_MARKET_TYPES:
            raise ValueError(f"Plan market type must be one of {', '.join(PLAN_MARKET_TYPES)}")
        return v


class ReportingConfig(_ConfigModel):
    """
    Configuration of one MRF build.

    Example:
        >>> config = ReportingConfig(
        ...     grouping_fields=["procedure_code", "npi"],
        ...     plan_info=PlanInfo(name="Premium Plan"),
        ... )
    """

    grouping_fields: List[str] = Field(
        default_factory=lambda: list(DEFAULT_GROUPING_FIELDS),
        description="Ordered claim fields making up the group key"
    )
    rate_field: str = Field("negotiated_rate", description="Claim amount that is averaged per bucket")
    reporting_entity: ReportingEntity = Field(default_factory=ReportingEntity)
    plan_info: PlanInfo = Field(default_factory=PlanInfo)

    version: str = Field("1.0.0", description="Schema version stamped on the document")
    tin_type: str = Field("ein", description="Type of the provider TINs: ein or npi")
    billing_code_type_version: Optional[str] = Field(
        None,
        description="Version of the billing code set; defaults to the as-of year"
    )
    reject_unknown_fields: bool = Field(
        False,
        description="Report fields not in the claim schema as validation errors"
    )

    @field_validator("grouping_fields")
    @classmethod
    def validate_grouping_fields(cls, v: List[str]) -> List[str]:
        return validate_key_fields(v)

    @field_validator("rate_field")
    @classmethod
    def validate_rate_field(cls, v: str) -> str:
        if v not in RATE_FIELDS:
            raise ValueError(f"Rate field must be one of {', '.join(RATE_FIELDS)}")
        return v

    @field_validator("tin_type")
    @classmethod
    def validate_tin_type(cls, v: str) -> str:
        if v not in TIN_TYPES:
            raise ValueError(f"TIN type must be one of {', '.join(TIN_TYPES)}")
        return v


def load_config(path: Union[str, Path]) -> ReportingConfig:
    """
    Load a reporting configuration from a JSON file.

    Args:
        path: Path to the JSON configuration file

    Returns:
        Validated ReportingConfig

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid JSON or fails validation
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}") from e

    return ReportingConfig.model_validate(data)
