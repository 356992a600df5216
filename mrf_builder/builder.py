"""
Main MRF builder interface.

Runs validated claims through grouping, aggregation and document assembly.
"""

import logging
from datetime import date
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple, Union

from .aggregator import aggregate_groups
from .assembler import assemble_document
from .config import ReportingConfig
from .exceptions import EmptyInputError
from .grouping import group_claims
from .models import AggregatedEntry, BatchValidationResult, Claim
from .mrf_models import MrfDocument
from .validator import ClaimValidator

logger = logging.getLogger(__name__)


class MrfBuilder:
    """
    Builds out-of-network allowed amount files from claims.

    This class orchestrates the build by:
    1. Grouping claims under the configured composite key
    2. Averaging the configured rate field per group
    3. Assembling the entries into the MRF document

    Example:
        >>> builder = MrfBuilder(ReportingConfig())
        >>> result, document = builder.build_from_records(rows)
        >>> print(document.to_json())
    """

    def __init__(self, config: Optional[ReportingConfig] = None):
        """
        Initialize the builder.

        Args:
            config: Reporting configuration. If not provided, uses defaults.
        """
        self.config = config or ReportingConfig()
        self.validator = ClaimValidator(
            reject_unknown_fields=self.config.reject_unknown_fields,
            required_fields=[self.config.rate_field]
        )

    def aggregate(self, claims: Sequence[Claim]) -> List[AggregatedEntry]:
        """
        Group and aggregate claims.

        Args:
            claims: Validated claims

        Returns:
            One aggregated entry per group, in first-seen group order
        """
        groups = group_claims(claims, self.config.grouping_fields)
        logger.debug("Grouped %d claims into %d buckets", len(claims), len(groups))
        return aggregate_groups(groups, self.config.rate_field, self.config.grouping_fields)

    def build(self, claims: Sequence[Claim], as_of: Optional[date] = None) -> MrfDocument:
        """
        Build the MRF document for validated claims.

        Args:
            claims: Validated claims
            as_of: Date stamped on the document (defaults to today)

        Returns:
            MrfDocument

        Raises:
            EmptyInputError: If there are no claims
        """
        if not claims:
            raise EmptyInputError()
        return assemble_document(self.aggregate(claims), self.config, as_of=as_of)

    def build_from_records(
        self,
        records: Sequence[Any],
        as_of: Optional[date] = None
    ) -> Tuple[BatchValidationResult, MrfDocument]:
        """
        Validate raw records and build the document from the valid ones.

        Invalid records are reported in the returned validation result and
        left out of the document. A record without a value for the
        configured rate field is invalid.

        Raises:
            BatchParseError: If records is not a collection of records
            EmptyInputError: If no record is valid
        """
        result = self.validator.validate_all(records)
        return result, self.build(result.valid_records, as_of=as_of)


def write_document(document: MrfDocument, path: Union[str, Path]) -> Path:
    """
    Write an MRF document as JSON.

    Args:
        document: Document to write
        path: Output file path; parent directories are created

    Returns:
        Path written
    """
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(document.to_json(), encoding="utf-8")
    logger.info("Wrote MRF document to %s", output_path)
    return output_path
