"""
Shared fixtures for the MRF builder tests.
"""

import pytest

from mrf_builder import Claim


def _row(**overrides):
    row = {
        "tin": "12-3456789",
        "providerName": "Springfield Family Practice",
        "npi": "1234567890",
        "procedureCode": "99213",
        "billingCodeType": "CPT",
        "negotiatedRate": "100.00",
        "effectiveDate": "2024-01-01",
        "expirationDate": "2024-12-31",
        "serviceCode": "11",
        "description": "Office visit, established patient",
    }
    row.update(overrides)
    return row


@pytest.fixture
def make_row():
    """Factory for raw claim rows as they come out of a CSV upload."""
    return _row


@pytest.fixture
def make_claim():
    """Factory for validated claims."""
    def _claim(**overrides):
        return Claim.model_validate({
            "tin": "12-3456789",
            "provider_name": "Springfield Family Practice",
            "npi": "1234567890",
            "procedure_code": "99213",
            "billing_code_type": "CPT",
            "negotiated_rate": "100.00",
            "effective_date": "2024-01-01",
            "expiration_date": "2024-12-31",
            "service_code": "11",
            "description": "Office visit, established patient",
            **overrides,
        })
    return _claim
