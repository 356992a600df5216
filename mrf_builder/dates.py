"""
Date parsing for claim effective and expiration dates.
"""

from datetime import date, datetime
from typing import Optional

# Reasonable date bounds for claim data
MIN_VALID_YEAR = 1900
MAX_VALID_YEAR = 2100

DATE_FORMATS = (
    "%Y-%m-%d",  # ISO 8601
    "%m/%d/%Y",  # US format
    "%Y%m%d",    # Compact
)


def parse_claim_date(value) -> Optional[date]:
    """
    Parse a claim date from the formats found in claim exports.

    Accepts ``date``/``datetime`` objects as-is and strings in ISO
    (2024-01-15), US (01/15/2024) or compact (20240115) form. The result must
    be a real calendar date with a year between 1900 and 2100.

    Args:
        value: Raw date value

    Returns:
        Parsed date, or None if the value cannot be interpreted as a date

    Examples:
        >>> parse_claim_date("2024-01-15")
        datetime.date(2024, 1, 15)
        >>> parse_claim_date("2024-02-30") is None
        True
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            # strptime raises ValueError for impossible dates like Feb 30
            continue
        if MIN_VALID_YEAR <= parsed.year <= MAX_VALID_YEAR:
            return parsed.date()

    return None
