"""
Data models for claim records, validation results and aggregated rates.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from .dates import parse_claim_date

BILLING_CODE_TYPES = ("CPT", "HCPCS", "DRG")
BILLING_CLASSES = ("professional", "institutional")

_NPI_PATTERN = re.compile(r"^\d{10}$")


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Coerce a raw amount into a Decimal.

    Floats are converted through their shortest repr so that ``10.005`` stays
    ``Decimal("10.005")`` instead of its binary expansion. A leading ``$`` is
    tolerated on strings.

    Args:
        value: Raw amount (str, int, float or Decimal)

    Returns:
        Finite Decimal, or None if the value is not a number
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(repr(value))
    elif isinstance(value, str):
        text = value.strip()
        if text.startswith("$"):
            text = text[1:].strip()
        try:
            amount = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    return amount if amount.is_finite() else None


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class Claim(BaseModel):
    """
    A validated claim record.

    Field declaration order is the order in which validation errors are
    reported for a rejected record.
    """

    tin: str = Field(..., title="TIN", description="Tax identification number of the billing entity")
    provider_name: str = Field(..., title="Provider name", description="Provider display name")
    npi: str = Field(..., title="NPI", description="10-digit national provider identifier")
    procedure_code: str = Field(..., title="Procedure code", description="CPT/HCPCS code or DRG")
    billing_code_type: str = Field(
        ...,
        title="Billing code type",
        description="Coding system of the procedure code: CPT, HCPCS or DRG"
    )
    negotiated_rate: Decimal = Field(
        ...,
        title="Negotiated rate",
        description="Negotiated or allowed amount for the service"
    )
    billed_charge: Optional[Decimal] = Field(
        None,
        title="Billed charge",
        description="Amount billed by the provider"
    )
    effective_date: date = Field(..., title="Effective date", description="Date the rate became effective")
    expiration_date: date = Field(..., title="Expiration date", description="Date the rate expires")
    service_code: Optional[str] = Field(
        None,
        title="Service code",
        description="Place of service code (e.g., '11' for office)"
    )
    description: Optional[str] = Field(None, title="Description", description="Service description")
    billing_class: str = Field(
        "professional",
        title="Billing class",
        description="professional or institutional"
    )
    plan_name: Optional[str] = Field(None, title="Plan name", description="Plan the claim was paid under")

    @field_validator("tin", "provider_name", "npi", "procedure_code", "billing_code_type", mode="before")
    @classmethod
    def require_text(cls, v: Any, info: ValidationInfo) -> Any:
        """Reject blank values and accept numeric identifiers as text."""
        if is_blank(v):
            raise PydanticCustomError(
                "required",
                "{title} is required",
                {"title": cls.model_fields[info.field_name].title}
            )
        if isinstance(v, (int, Decimal)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("service_code", "description", "plan_name", mode="before")
    @classmethod
    def optional_text(cls, v: Any) -> Any:
        """Treat blank optional values as absent."""
        if is_blank(v):
            return None
        if isinstance(v, (int, Decimal)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("npi")
    @classmethod
    def validate_npi(cls, v: str) -> str:
        if not _NPI_PATTERN.match(v):
            raise PydanticCustomError("npi_format", "NPI must be a 10-digit number")
        return v

    @field_validator("billing_code_type")
    @classmethod
    def validate_billing_code_type(cls, v: str) -> str:
        if v not in BILLING_CODE_TYPES:
            raise PydanticCustomError("billing_code_type", "Billing code type must be CPT, HCPCS, or DRG")
        return v

    @field_validator("negotiated_rate", "billed_charge", mode="before")
    @classmethod
    def validate_amount(cls, v: Any, info: ValidationInfo) -> Optional[Decimal]:
        """Coerce amounts from text and require them to be non-negative."""
        field = cls.model_fields[info.field_name]
        if is_blank(v):
            if field.is_required():
                raise PydanticCustomError("required", "{title} is required", {"title": field.title})
            return None

        amount = parse_amount(v)
        if amount is None:
            raise PydanticCustomError("amount_type", "{title} must be a number", {"title": field.title})
        if amount < 0:
            raise PydanticCustomError(
                "amount_negative",
                "{title} must be a non-negative number",
                {"title": field.title}
            )
        return amount

    @field_validator("effective_date", "expiration_date", mode="before")
    @classmethod
    def validate_date(cls, v: Any) -> date:
        parsed = parse_claim_date(v)
        if parsed is None:
            raise PydanticCustomError("date_format", "Invalid date format")
        return parsed

    @field_validator("billing_class", mode="before")
    @classmethod
    def validate_billing_class(cls, v: Any) -> str:
        """Normalize billing class ('Professional' -> 'professional')."""
        if is_blank(v):
            return "professional"
        if not isinstance(v, str) or v.strip().lower() not in BILLING_CLASSES:
            raise PydanticCustomError("billing_class", "Billing class must be professional or institutional")
        return v.strip().lower()


class ProviderRef(BaseModel):
    """A provider identity collected while aggregating a bucket."""

    npi: str
    provider_name: str
    tin: str


class AggregatedEntry(BaseModel):
    """Summary of one bucket of claims sharing a group key."""

    group_key: str = Field(..., description="Composite key the bucket was grouped under")
    key_values: Dict[str, Optional[str]] = Field(
        default_factory=dict,
        description="Grouping field values of the bucket, in key order"
    )

    # Descriptive fields copied from the bucket's first claim
    billing_code: str
    billing_code_type: str
    service_code: Optional[str] = None
    description: Optional[str] = None
    billing_class: str = "professional"
    effective_date: date
    expiration_date: date
    plan_name: Optional[str] = None

    # Aggregated values
    rate: Decimal = Field(..., description="Mean of the rate field, rounded to cents")
    billed_charge: Optional[Decimal] = Field(
        None,
        description="Mean billed charge of the claims that carry one, rounded to cents"
    )
    claim_count: int = Field(..., ge=1)
    providers: List[ProviderRef] = Field(default_factory=list)

    @property
    def provider_npis(self) -> List[str]:
        return [provider.npi for provider in self.providers]


class BatchValidationResult(BaseModel):
    """Outcome of validating a batch of raw records."""

    valid_records: List[Claim] = Field(default_factory=list)
    valid_indices: List[int] = Field(
        default_factory=list,
        description="Original input index of each valid record"
    )
    errors_by_index: Dict[int, List[str]] = Field(
        default_factory=dict,
        description="Original input index -> 'field: message' strings"
    )

    @property
    def total(self) -> int:
        return len(self.valid_records) + len(self.errors_by_index)

    @property
    def error_count(self) -> int:
        return len(self.errors_by_index)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors_by_index)


class UpdateResult(BaseModel):
    """Outcome of editing one claim in a working set."""

    index: int
    success: bool
    claim: Optional[Claim] = Field(None, description="Stored claim after the update attempt")
    errors: List[str] = Field(default_factory=list)
    values: Dict[str, Any] = Field(
        default_factory=dict,
        description="Merged field values that were validated, including a rejected edit"
    )
