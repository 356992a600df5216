"""
Example usage of the MRF builder.

This script demonstrates validating a claims upload, editing the working
set and generating an out-of-network allowed amounts file.
"""

from datetime import date
from pathlib import Path

from mrf_builder import ClaimsSession, MrfBuilder, ReportingConfig, load_config
from mrf_builder.config import PROVIDER_GROUPING_FIELDS

DATA_DIR = Path(__file__).parent / "data"


def example_1_validate_upload():
    """Example 1: Validate a CSV upload and report row errors."""
    print("=" * 80)
    print("Example 1: Validate a Claims Upload")
    print("=" * 80)

    session = ClaimsSession()
    result = session.load_file(DATA_DIR / "sample_claims.csv")

    print(f"\nLoaded {len(session)} valid claims ({result.error_count} with errors)")
    for index, messages in result.errors_by_index.items():
        print(f"  Row {index + 1}:")
        for message in messages:
            print(f"    - {message}")
    print()
    return session


def example_2_edit_working_set(session):
    """Example 2: Fix a claim, reject a bad edit and delete a claim."""
    print("=" * 80)
    print("Example 2: Edit the Working Set")
    print("=" * 80)

    result = session.update(0, {"negotiatedRate": "102.00"})
    print(f"\nUpdate claim 0 rate -> 102.00: {'accepted' if result.success else 'rejected'}")

    result = session.update(1, {"npi": "22222"})
    print(f"Update claim 1 NPI -> 22222: {'accepted' if result.success else 'rejected'}")
    for message in result.errors:
        print(f"  - {message}")
    print(f"Stored NPI is still {session.claims[1].npi}")

    session.delete(len(session) - 1)
    print(f"Deleted last claim, {len(session)} claims remain")
    print()


def example_3_generate_mrf(session):
    """Example 3: Generate the MRF document from the working set."""
    print("=" * 80)
    print("Example 3: Generate an MRF Document")
    print("=" * 80)

    config = load_config(DATA_DIR / "reporting_config.json")
    document = session.build_document(config, as_of=date.today())

    print(f"\nReporting Entity: {document.reporting_entity_name}")
    print(f"Plan:             {document.plan_name}")
    print(f"{'Code':<8} {'TIN':<14} {'NPIs':<26} {'Allowed':>10}")
    print("-" * 80)
    for item in document.out_of_network:
        for allowed in item.allowed_amounts:
            for payment in allowed.payments:
                npis = ", ".join(npi for provider in payment.providers for npi in provider.npi)
                print(f"{item.billing_code:<8} {allowed.tin.value:<14} {npis:<26} ${payment.allowed_amount:>9.2f}")
    print()


def example_4_provider_level_rates(session):
    """Example 4: Aggregate per procedure and provider instead of per procedure."""
    print("=" * 80)
    print("Example 4: Provider-Level Aggregation")
    print("=" * 80)

    builder = MrfBuilder(ReportingConfig(grouping_fields=PROVIDER_GROUPING_FIELDS))
    for entry in builder.aggregate(session.claims):
        print(f"{entry.billing_code:<8} {entry.providers[0].provider_name:<30} "
              f"{entry.claim_count} claim(s)  ${entry.rate:>9}")
    print()


if __name__ == "__main__":
    working_set = example_1_validate_upload()
    example_4_provider_level_rates(working_set)
    example_2_edit_working_set(working_set)
    example_3_generate_mrf(working_set)
