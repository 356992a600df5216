"""
Tests for claim grouping and rate aggregation.

Run with: pytest test_aggregation.py -v
"""

from decimal import Decimal

import pytest

from mrf_builder import EmptyInputError, aggregate_bucket, group_claims
from mrf_builder.aggregator import aggregate_groups, mean_amount, round_currency
from mrf_builder.config import DEFAULT_GROUPING_FIELDS, PROVIDER_GROUPING_FIELDS
from mrf_builder.grouping import KEY_DELIMITER, make_group_key, validate_key_fields


class TestGrouping:
    """Test composite-key grouping."""

    def test_ungrouped_field_difference_shares_bucket(self, make_claim):
        """Test that claims differing only in an ungrouped field share a bucket."""
        claims = [
            make_claim(description="Office visit"),
            make_claim(description="Established patient visit"),
        ]

        groups = group_claims(claims, DEFAULT_GROUPING_FIELDS)

        assert len(groups) == 1
        assert list(groups.values())[0] == claims

    @pytest.mark.parametrize("field,value", [
        ("procedure_code", "99214"),
        ("billing_code_type", "HCPCS"),
        ("service_code", "22"),
    ])
    def test_grouped_field_difference_splits_bucket(self, make_claim, field, value):
        """Test that a difference in any grouped field splits the bucket."""
        claims = [make_claim(), make_claim(**{field: value})]

        assert len(group_claims(claims, DEFAULT_GROUPING_FIELDS)) == 2

    def test_keys_are_case_sensitive(self, make_claim):
        """Test that code values are grouped case-sensitively."""
        claims = [
            make_claim(procedure_code="G0008", billing_code_type="HCPCS"),
            make_claim(procedure_code="g0008", billing_code_type="HCPCS"),
        ]

        assert len(group_claims(claims, DEFAULT_GROUPING_FIELDS)) == 2

    def test_first_seen_order_and_bucket_order(self, make_claim):
        """Test bucket order and member order."""
        a1 = make_claim(procedure_code="99214", negotiated_rate="1")
        b1 = make_claim(procedure_code="99213", negotiated_rate="2")
        a2 = make_claim(procedure_code="99214", negotiated_rate="3")

        groups = group_claims([a1, b1, a2], ["procedure_code"])

        assert list(groups) == ["99214", "99213"]
        assert groups["99214"] == [a1, a2]

    def test_group_key_format(self, make_claim):
        """Test the composite key of a claim with a missing field."""
        claim = make_claim(service_code=None)

        key = make_group_key(claim, DEFAULT_GROUPING_FIELDS)

        assert key == KEY_DELIMITER.join(["99213", "CPT", ""])

    def test_delimiter_prevents_concatenation_collisions(self, make_claim):
        """Test that joined key values cannot collide."""
        first = make_claim(procedure_code="9921", service_code="31")
        second = make_claim(procedure_code="99213", service_code="1")

        assert len(group_claims([first, second], ["procedure_code", "service_code"])) == 2

    def test_provider_level_grouping(self, make_claim):
        """Test grouping per procedure and provider."""
        claims = [
            make_claim(npi="1111111111"),
            make_claim(npi="2222222222"),
            make_claim(npi="1111111111"),
        ]

        groups = group_claims(claims, PROVIDER_GROUPING_FIELDS)

        assert [len(bucket) for bucket in groups.values()] == [2, 1]

    def test_invalid_key_fields(self, make_claim):
        """Test empty, unknown and duplicate key fields."""
        with pytest.raises(ValueError):
            group_claims([make_claim()], [])
        with pytest.raises(ValueError):
            group_claims([make_claim()], ["procedure_code", "member_id"])
        with pytest.raises(ValueError):
            validate_key_fields(["npi", "npi"])


class TestRounding:
    """Test cent rounding of aggregated rates."""

    @pytest.mark.parametrize("value,expected", [
        ("10.005", "10.01"),
        ("10.004", "10.00"),
        ("0.125", "0.13"),
        ("-0.125", "-0.13"),
        ("105", "105.00"),
    ])
    def test_round_half_away_from_zero(self, value, expected):
        """Test cent rounding half away from zero."""
        assert round_currency(Decimal(value)) == Decimal(expected)

    def test_mean_of_straddling_values(self):
        """Test a mean that lands exactly on a half cent."""
        # Mean is exactly 10.005
        assert mean_amount([Decimal("10.00"), Decimal("10.01")]) == Decimal("10.01")

    def test_rounds_mean_not_inputs(self):
        """Test that only the mean is rounded."""
        # Rounding each input first would give (0.12 + 0.13) / 2 = 0.125 -> 0.13
        assert mean_amount([Decimal("0.124"), Decimal("0.125")]) == Decimal("0.12")

    def test_mean_of_empty_list(self):
        """Test averaging no amounts."""
        with pytest.raises(ValueError):
            mean_amount([])


class TestAggregator:
    """Test bucket aggregation."""

    def test_rate_is_rounded_mean(self, make_claim):
        """Test the aggregated rate of float inputs."""
        entry = aggregate_bucket([
            make_claim(negotiated_rate=10.005),
            make_claim(negotiated_rate=10.015),
        ])

        assert entry.rate == Decimal("10.01")
        assert entry.claim_count == 2

    def test_singleton_bucket(self, make_claim):
        """Test a bucket with a single claim."""
        entry = aggregate_bucket([make_claim(negotiated_rate="87.455")])

        assert entry.rate == Decimal("87.46")
        assert entry.providers[0].npi == "1234567890"

    def test_providers_deduplicated_first_wins(self, make_claim):
        """Test provider deduplication by NPI."""
        entry = aggregate_bucket([
            make_claim(npi="1111111111", provider_name="Dr. Adams", tin="11-1111111"),
            make_claim(npi="2222222222", provider_name="Dr. Baker", tin="22-2222222"),
            make_claim(npi="1111111111", provider_name="Adams Clinic", tin="99-9999999"),
        ])

        assert [p.npi for p in entry.providers] == ["1111111111", "2222222222"]
        assert entry.providers[0].provider_name == "Dr. Adams"
        assert entry.providers[0].tin == "11-1111111"

    def test_descriptive_fields_from_first_claim(self, make_claim):
        """Test that descriptive fields come from the first claim."""
        entry = aggregate_bucket([
            make_claim(description="First", billing_class="professional", plan_name="Gold"),
            make_claim(description="Second", billing_class="institutional", plan_name="Silver"),
        ])

        assert entry.description == "First"
        assert entry.billing_class == "professional"
        assert entry.plan_name == "Gold"
        assert entry.billing_code == "99213"
        assert entry.billing_code_type == "CPT"
        assert entry.service_code == "11"

    def test_billed_charge_mean_of_claims_that_have_one(self, make_claim):
        """Test the mean billed charge of a mixed bucket."""
        entry = aggregate_bucket([
            make_claim(billed_charge="200.00"),
            make_claim(billed_charge="250.01"),
            make_claim(),
        ])

        assert entry.billed_charge == Decimal("225.01")

    def test_billed_charge_absent(self, make_claim):
        """Test a bucket without billed charges."""
        assert aggregate_bucket([make_claim()]).billed_charge is None

    def test_alternate_rate_field(self, make_claim):
        """Test averaging billed charges as the rate."""
        entry = aggregate_bucket(
            [make_claim(billed_charge="300"), make_claim(billed_charge="301")],
            rate_field="billed_charge"
        )

        assert entry.rate == Decimal("300.50")

    def test_rate_field_mean_skips_claims_without_value(self, make_claim):
        """Test averaging an optional rate field over the claims that carry it."""
        entry = aggregate_bucket(
            [make_claim(billed_charge="200"), make_claim(), make_claim(billed_charge="205")],
            rate_field="billed_charge"
        )

        assert entry.rate == Decimal("202.50")
        assert entry.claim_count == 3

    def test_no_rate_field_value_in_bucket(self, make_claim):
        """Test a bucket where no claim carries the rate field."""
        with pytest.raises(EmptyInputError):
            aggregate_bucket([make_claim(), make_claim()], rate_field="billed_charge")

    def test_empty_bucket(self):
        """Test aggregating an empty bucket."""
        with pytest.raises(ValueError):
            aggregate_bucket([])

    def test_key_values_recorded(self, make_claim):
        """Test that grouping values are recorded on entries."""
        groups = group_claims([make_claim(), make_claim(procedure_code="99214")], DEFAULT_GROUPING_FIELDS)

        entries = aggregate_groups(groups, key_fields=DEFAULT_GROUPING_FIELDS)

        assert [entry.group_key for entry in entries] == list(groups)
        assert entries[1].key_values == {
            "procedure_code": "99214",
            "billing_code_type": "CPT",
            "service_code": "11",
        }

    def test_buckets_are_independent(self, make_claim):
        """Test that buckets are aggregated independently."""
        groups = group_claims([
            make_claim(negotiated_rate="100"),
            make_claim(procedure_code="99214", negotiated_rate="200"),
            make_claim(negotiated_rate="110"),
        ], DEFAULT_GROUPING_FIELDS)

        entries = aggregate_groups(groups, key_fields=DEFAULT_GROUPING_FIELDS)

        assert [entry.rate for entry in entries] == [Decimal("105.00"), Decimal("200.00")]
