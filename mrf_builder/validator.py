"""
Field and batch validation of raw claim records.

A raw record is an untyped mapping, usually a parsed CSV row. Validation
decodes it into a ``Claim`` or collects every field-level problem as a
``"<field>: <reason>"`` string. Batch validation never stops at the first
bad record: each input record ends up either in the valid list or in the
error map under its original index.
"""

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Type, Union

from pydantic import BaseModel, ValidationError

from .exceptions import BatchParseError, FieldValidationError
from .models import BatchValidationResult, Claim, is_blank

logger = logging.getLogger(__name__)

# Column names used by other claim exports for the same fields
FIELD_ALIASES: Dict[str, str] = {
    "claim_type": "billing_class",
    "billed": "billed_charge",
    "plan": "plan_name",
}

NOT_A_MAPPING_MESSAGE = "record: Expected a mapping of field names to values"

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_NON_ALNUM = re.compile(r"[^0-9a-zA-Z]+")


def normalize_field_name(name: Any) -> str:
    """
    Normalize a column header to a claim field name.

    Examples:
        >>> normalize_field_name("procedureCode")
        'procedure_code'
        >>> normalize_field_name("Provider Name")
        'provider_name'
        >>> normalize_field_name("NPI")
        'npi'
    """
    text = _CAMEL_BOUNDARY.sub("_", str(name).strip())
    return _NON_ALNUM.sub("_", text).strip("_").lower()


def normalize_record(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Normalize the keys of a raw record.

    Aliased columns are renamed unless the canonical column is also present.
    When two headers normalize to the same name, the first one wins.
    """
    record: Dict[str, Any] = {}
    for key, value in raw.items():
        name = normalize_field_name(key)
        if name and name not in record:
            record[name] = value

    for alias, canonical in FIELD_ALIASES.items():
        if alias in record and canonical not in record:
            record[canonical] = record.pop(alias)

    return record


def _field_title(schema: Type[BaseModel], field: str) -> str:
    field_info = schema.model_fields.get(field)
    return field_info.title if field_info is not None and field_info.title else field


def format_validation_errors(exc: ValidationError, schema: Type[BaseModel] = Claim) -> List[str]:
    """
    Turn a pydantic ValidationError into 'field: message' strings.

    Errors keep pydantic's order, which follows field declaration order.
    Missing fields are reported with the field's title ("TIN is required").
    """
    messages = []
    for error in exc.errors():
        loc = error.get("loc") or ("record",)
        field = str(loc[0])
        if error["type"] == "missing":
            message = f"{_field_title(schema, field)} is required"
        else:
            message = error["msg"]
        messages.append(f"{field}: {message}")
    return messages


def validate_claim(
    raw: Any,
    schema: Type[BaseModel] = Claim,
    reject_unknown_fields: bool = False,
    required_fields: Sequence[str] = ()
) -> Union[BaseModel, List[str]]:
    """
    Validate and coerce one raw record.

    All fields are checked independently and every violation is reported,
    in field declaration order.

    Args:
        raw: Raw record mapping
        schema: Field schema to validate against
        reject_unknown_fields: Report fields the schema does not declare
        required_fields: Optional schema fields that must carry a value

    Returns:
        The typed record, or the list of 'field: message' errors
    """
    if not isinstance(raw, Mapping):
        return [NOT_A_MAPPING_MESSAGE]

    record = normalize_record(raw)

    errors: List[str] = []
    claim: Optional[BaseModel] = None
    try:
        claim = schema.model_validate(record)
    except ValidationError as e:
        errors = format_validation_errors(e, schema)

    if required_fields:
        reported = {message.split(":", 1)[0] for message in errors}
        errors.extend(
            f"{name}: {_field_title(schema, name)} is required"
            for name in required_fields
            if name not in reported and is_blank(record.get(name))
        )
        order = {name: position for position, name in enumerate(schema.model_fields)}
        errors.sort(key=lambda message: order.get(message.split(":", 1)[0], len(order)))

    if reject_unknown_fields:
        errors.extend(f"{name}: Unknown field" for name in record if name not in schema.model_fields)

    if errors:
        return errors
    return claim


class ClaimValidator:
    """
    Validates raw claim records against a field schema.

    Example:
        >>> validator = ClaimValidator()
        >>> result = validator.validate_all(rows)
        >>> print(f"{len(result.valid_records)} valid, {result.error_count} invalid")
    """

    def __init__(
        self,
        schema: Type[BaseModel] = Claim,
        reject_unknown_fields: bool = False,
        required_fields: Sequence[str] = ()
    ):
        """
        Initialize the validator.

        Args:
            schema: Pydantic model describing the claim fields
            reject_unknown_fields: Report fields the schema does not declare
            required_fields: Optional schema fields that must carry a value,
                             such as the amount a build averages
        """
        self.schema = schema
        self.reject_unknown_fields = reject_unknown_fields
        self.required_fields = tuple(required_fields)

    def validate(self, raw: Any) -> Union[BaseModel, List[str]]:
        """Validate one record; see ``validate_claim``."""
        return validate_claim(raw, self.schema, self.reject_unknown_fields, self.required_fields)

    def validate_or_raise(self, raw: Any, index: Optional[int] = None) -> BaseModel:
        """
        Validate one record, raising on failure.

        Raises:
            FieldValidationError: If any field fails validation
        """
        result = self.validate(raw)
        if isinstance(result, list):
            raise FieldValidationError(result, index=index)
        return result

    def validate_all(self, records: Sequence[Any]) -> BatchValidationResult:
        """
        Validate every record of a batch.

        Every record is visited exactly once. Valid records keep their
        relative input order; invalid ones are reported under their original
        index.

        Args:
            records: Raw records

        Returns:
            BatchValidationResult with valid records and errors by index

        Raises:
            BatchParseError: If records is not a collection of records
        """
        if isinstance(records, (str, bytes, Mapping)) or not isinstance(records, Sequence):
            raise BatchParseError(
                f"Expected a list of claim records, got {type(records).__name__}"
            )

        result = BatchValidationResult()
        for index, raw in enumerate(records):
            try:
                result.valid_records.append(self.validate_or_raise(raw, index=index))
                result.valid_indices.append(index)
            except FieldValidationError as e:
                logger.debug("Rejected claim record %d: %s", index, "; ".join(e.messages))
                result.errors_by_index[index] = e.messages

        logger.info(
            "Validated %d claim records: %d valid, %d with errors",
            len(records), len(result.valid_records), result.error_count
        )
        return result


def validate_claims(
    records: Sequence[Any],
    schema: Type[BaseModel] = Claim,
    reject_unknown_fields: bool = False,
    required_fields: Sequence[str] = ()
) -> BatchValidationResult:
    """Validate a batch of raw records; see ``ClaimValidator.validate_all``."""
    return ClaimValidator(schema, reject_unknown_fields, required_fields).validate_all(records)
