"""
Assembly of aggregated entries into an MRF document.
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from .config import ReportingConfig
from .exceptions import EmptyInputError
from .models import AggregatedEntry, ProviderRef
from .mrf_models import (
    AllowedAmount,
    MrfDocument,
    OutOfNetworkItem,
    OutOfNetworkPayment,
    ProviderPayment,
    TaxIdentifier,
)

logger = logging.getLogger(__name__)


def _providers_by_tin(providers: Sequence[ProviderRef]) -> Dict[str, List[str]]:
    """Group provider NPIs under their TIN, in first-seen order."""
    by_tin: Dict[str, List[str]] = {}
    for provider in providers:
        by_tin.setdefault(provider.tin, []).append(provider.npi)
    return by_tin


def build_allowed_amounts(entry: AggregatedEntry, tin_type: str = "ein") -> List[AllowedAmount]:
    """
    Project one aggregated entry into allowed-amount items.

    One item is produced per billing TIN; its single payment carries the
    entry's aggregated rate and lists the NPIs billed under that TIN.
    """
    allowed_amounts = []
    for tin, npis in _providers_by_tin(entry.providers).items():
        billed_charge = float(entry.billed_charge) if entry.billed_charge is not None else None
        allowed_amounts.append(AllowedAmount(
            tin=TaxIdentifier(type=tin_type, value=tin),
            service_code=[entry.service_code] if entry.service_code else None,
            billing_class=entry.billing_class,
            payments=[
                OutOfNetworkPayment(
                    allowed_amount=float(entry.rate),
                    providers=[ProviderPayment(billed_charge=billed_charge, npi=npis)]
                )
            ]
        ))
    return allowed_amounts


def assemble_document(
    entries: Sequence[AggregatedEntry],
    config: Optional[ReportingConfig] = None,
    as_of: Optional[date] = None
) -> MrfDocument:
    """
    Build the MRF document from aggregated entries.

    Entries are wrapped in iteration order. Entries for the same billing code
    share one out-of-network item, so the two-level procedure/provider
    grouping and the flat grouping produce the same shape.

    Args:
        entries: Aggregated entries
        config: Reporting configuration (defaults when omitted)
        as_of: Date stamped as last_updated_on (defaults to today)

    Returns:
        MrfDocument

    Raises:
        EmptyInputError: If there are no entries
    """
    if not entries:
        raise EmptyInputError()

    config = config or ReportingConfig()
    as_of = as_of or date.today()
    code_version = config.billing_code_type_version or str(as_of.year)

    items: Dict[Tuple[str, str], OutOfNetworkItem] = {}
    for entry in entries:
        code_key = (entry.billing_code_type, entry.billing_code)
        item = items.get(code_key)
        if item is None:
            name = entry.description or f"Medical service: {entry.billing_code}"
            item = OutOfNetworkItem(
                name=name,
                billing_code_type=entry.billing_code_type,
                billing_code=entry.billing_code,
                billing_code_type_version=code_version,
                description=entry.description or name,
                allowed_amounts=build_allowed_amounts(entry, config.tin_type)
            )
            items[code_key] = item
        else:
            item.allowed_amounts.extend(build_allowed_amounts(entry, config.tin_type))

    # Plan name falls back to the first claim's plan when not configured
    plan = config.plan_info
    plan_name = plan.name or entries[0].plan_name

    document = MrfDocument(
        reporting_entity_name=config.reporting_entity.name,
        reporting_entity_type=config.reporting_entity.type,
        plan_name=plan_name,
        plan_id_type=plan.id_type,
        plan_id=plan.id,
        plan_market_type=plan.market_type,
        out_of_network=list(items.values()),
        last_updated_on=as_of.isoformat(),
        version=config.version
    )

    logger.info(
        "Assembled MRF document with %d billing codes from %d aggregated entries",
        len(document.out_of_network), len(entries)
    )
    return document
