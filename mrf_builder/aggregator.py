"""
Aggregation of claim buckets into summary rate entries.

Each bucket is reduced to one entry: the arithmetic mean of the rate field
rounded to cents, the distinct providers that were paid, and descriptive
fields taken from the bucket's first claim. Claims without a value for the
rate field are left out of the mean but still count as bucket members.

Rounding:
    The mean is computed exactly with Decimal arithmetic and then rounded
    half away from zero to 2 decimal places. Individual amounts are never
    rounded before averaging, so [10.00, 10.01] reports 10.01.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Sequence

from .exceptions import EmptyInputError
from .grouping import make_group_key
from .models import AggregatedEntry, Claim, ProviderRef

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def round_currency(value: Decimal) -> Decimal:
    """
    Round an amount to cents, half away from zero.

    Examples:
        >>> round_currency(Decimal("10.005"))
        Decimal('10.01')
        >>> round_currency(Decimal("-0.125"))
        Decimal('-0.13')
    """
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def mean_amount(values: Sequence[Decimal]) -> Decimal:
    """
    Arithmetic mean of amounts, rounded to cents.

    Raises:
        ValueError: If values is empty
    """
    if not values:
        raise ValueError("Cannot average an empty list of amounts")
    return round_currency(sum(values, Decimal(0)) / len(values))


def collect_providers(claims: Sequence[Claim]) -> List[ProviderRef]:
    """
    Distinct providers of a bucket, keyed by NPI in first-seen order.

    When claims disagree on a provider's name or TIN, the first claim wins.
    """
    providers: Dict[str, ProviderRef] = {}
    for claim in claims:
        existing = providers.get(claim.npi)
        if existing is None:
            providers[claim.npi] = ProviderRef(npi=claim.npi, provider_name=claim.provider_name, tin=claim.tin)
        elif existing.provider_name != claim.provider_name or existing.tin != claim.tin:
            logger.debug(
                "Provider %s appears as %r/%s and %r/%s; keeping the first",
                claim.npi, existing.provider_name, existing.tin, claim.provider_name, claim.tin
            )
    return list(providers.values())


def aggregate_bucket(
    claims: Sequence[Claim],
    rate_field: str = "negotiated_rate",
    group_key: Optional[str] = None,
    key_fields: Optional[Sequence[str]] = None
) -> AggregatedEntry:
    """
    Reduce one bucket of claims to an aggregated entry.

    Args:
        claims: Claims sharing a group key, in validation order
        rate_field: Claim amount to average
        group_key: Key the bucket was grouped under (rebuilt from the first
                   claim when omitted)
        key_fields: Grouping fields, recorded on the entry

    Returns:
        AggregatedEntry for the bucket

    Raises:
        ValueError: If the bucket is empty
        EmptyInputError: If no claim of the bucket has a value for rate_field
    """
    if not claims:
        raise ValueError("Cannot aggregate an empty bucket")

    rates = [getattr(claim, rate_field) for claim in claims]
    rates = [rate for rate in rates if rate is not None]
    if not rates:
        raise EmptyInputError(
            f"No claim for {claims[0].procedure_code} has a {rate_field} value to aggregate"
        )
    if len(rates) < len(claims):
        logger.debug(
            "Averaging %s over %d of %d claims for %s",
            rate_field, len(rates), len(claims), claims[0].procedure_code
        )

    billed = [claim.billed_charge for claim in claims if claim.billed_charge is not None]

    first = claims[0]
    fields = list(key_fields or [])
    if group_key is None:
        group_key = make_group_key(first, fields)

    return AggregatedEntry(
        group_key=group_key,
        key_values={
            name: None if getattr(first, name) is None else str(getattr(first, name))
            for name in fields
        },
        billing_code=first.procedure_code,
        billing_code_type=first.billing_code_type,
        service_code=first.service_code,
        description=first.description,
        billing_class=first.billing_class,
        effective_date=first.effective_date,
        expiration_date=first.expiration_date,
        plan_name=first.plan_name,
        rate=mean_amount(rates),
        billed_charge=mean_amount(billed) if billed else None,
        claim_count=len(claims),
        providers=collect_providers(claims),
    )


def aggregate_groups(
    groups: Dict[str, List[Claim]],
    rate_field: str = "negotiated_rate",
    key_fields: Optional[Sequence[str]] = None
) -> List[AggregatedEntry]:
    """Aggregate every bucket, keeping bucket order."""
    return [
        aggregate_bucket(bucket, rate_field=rate_field, group_key=key, key_fields=key_fields)
        for key, bucket in groups.items()
    ]
