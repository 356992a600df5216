"""
Out-of-network allowed amounts MRF document models.

This module defines the single document schema the builder produces. The
structure nests as:

    MrfDocument
      out_of_network[]            one item per billing code
        allowed_amounts[]         one item per billing TIN
          payments[]              aggregated allowed amount
            providers[]           NPIs paid that amount

Serializing with ``MrfDocument.to_json()`` and re-parsing with
``MrfDocument.model_validate_json()`` is lossless.
"""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

TIN_TYPES = ("ein", "npi")
PLAN_ID_TYPES = ("EIN", "HIOS")
PLAN_MARKET_TYPES = ("group", "individual")


class TaxIdentifier(BaseModel):
    """Tax identifier of the entity that billed the service."""

    type: str = Field(..., description="ein or npi")
    value: str

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        if v not in TIN_TYPES:
            raise ValueError(f"TIN type must be one of {', '.join(TIN_TYPES)}")
        return v


class ProviderPayment(BaseModel):
    """Providers that were paid an allowed amount."""

    billed_charge: Optional[float] = Field(None, description="Billed charge, omitted when unknown", ge=0)
    npi: List[str] = Field(..., min_length=1)


class OutOfNetworkPayment(BaseModel):
    """An allowed amount and the providers it was paid to."""

    allowed_amount: float = Field(..., ge=0)
    billing_code_modifier: Optional[List[str]] = None
    providers: List[ProviderPayment] = Field(..., min_length=1)


class AllowedAmount(BaseModel):
    """Allowed amounts paid to one billing entity."""

    tin: TaxIdentifier
    service_code: Optional[List[str]] = None
    billing_class: str
    payments: List[OutOfNetworkPayment] = Field(..., min_length=1)

    @field_validator("billing_class")
    @classmethod
    def validate_billing_class(cls, v: str) -> str:
        if v not in ("professional", "institutional"):
            raise ValueError("Billing class must be professional or institutional")
        return v


class OutOfNetworkItem(BaseModel):
    """All allowed amounts reported for one billing code."""

    name: str
    billing_code_type: str
    billing_code: str
    billing_code_type_version: str
    description: str
    allowed_amounts: List[AllowedAmount] = Field(..., min_length=1)


class MrfDocument(BaseModel):
    """Root of an out-of-network allowed amounts file."""

    reporting_entity_name: str
    reporting_entity_type: str
    plan_name: Optional[str] = None
    plan_id_type: Optional[str] = None
    plan_id: Optional[str] = None
    plan_market_type: Optional[str] = None
    out_of_network: List[OutOfNetworkItem]
    last_updated_on: str = Field(..., description="ISO 8601 date (YYYY-MM-DD)")
    version: str

    @field_validator("plan_id_type")
    @classmethod
    def validate_plan_id_type(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in PLAN_ID_TYPES:
            raise ValueError(f"Plan ID type must be one of {', '.join(PLAN_ID_TYPES)}")
        return v

    @field_validator("plan_market_type")
    @classmethod
    def validate_plan_market_type(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in PLAN_MARKET_TYPES:
            raise ValueError(f"Plan market type must be one of {', '.join(PLAN_MARKET_TYPES)}")
        return v

    @field_validator("last_updated_on")
    @classmethod
    def validate_last_updated_on(cls, v: str) -> str:
        date.fromisoformat(v)
        return v

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Serialize the document, leaving out absent optional fields."""
        return self.model_dump_json(indent=indent, exclude_none=True)

    @property
    def provider_entry_count(self) -> int:
        return sum(
            len(payment.providers)
            for item in self.out_of_network
            for allowed in item.allowed_amounts
            for payment in allowed.payments
        )
