"""
Grouping of validated claims into aggregation buckets.

Claims are partitioned under a composite key built from an ordered list of
claim fields. Two claims share a bucket only if every configured field is
equal (case-sensitive, no normalization).
"""

from typing import Dict, List, Sequence

from .models import Claim

# ASCII unit separator, never present in claim codes or identifiers
KEY_DELIMITER = "\x1f"


def validate_key_fields(key_fields: Sequence[str]) -> List[str]:
    """
    Check that grouping fields name claim fields.

    Args:
        key_fields: Ordered claim field names

    Returns:
        The fields as a list

    Raises:
        ValueError: If the list is empty, repeats a field or names an unknown field
    """
    fields = list(key_fields)
    if not fields:
        raise ValueError("At least one grouping field is required")
    if len(fields) != len(set(fields)):
        raise ValueError("Grouping fields must be unique")

    unknown = [name for name in fields if name not in Claim.model_fields]
    if unknown:
        raise ValueError(f"Unknown grouping field(s): {', '.join(unknown)}")
    return fields


def _key_part(value) -> str:
    return "" if value is None else str(value)


def make_group_key(claim: Claim, key_fields: Sequence[str]) -> str:
    """Build the composite group key of a claim."""
    return KEY_DELIMITER.join(_key_part(getattr(claim, name)) for name in key_fields)


def group_claims(claims: Sequence[Claim], key_fields: Sequence[str]) -> Dict[str, List[Claim]]:
    """
    Partition claims into buckets by composite key.

    Buckets are returned in first-seen key order and claims keep their
    relative order inside a bucket, so identical input always produces the
    same iteration order.

    Args:
        claims: Validated claims
        key_fields: Ordered claim field names making up the key

    Returns:
        Ordered mapping of group key to the claims in that bucket

    Raises:
        ValueError: If key_fields is invalid
    """
    fields = validate_key_fields(key_fields)

    groups: Dict[str, List[Claim]] = {}
    for claim in claims:
        groups.setdefault(make_group_key(claim, fields), []).append(claim)

    return groups
