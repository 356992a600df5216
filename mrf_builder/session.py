"""
Working set of validated claims for one caller.

A ``ClaimsSession`` owns the claims loaded from the latest upload together
with the errors reported for the rejected upload rows, and supports editing
and removing individual claims before the MRF document is (re)built.

Two error maps are kept apart because they use different index spaces:
``upload_errors`` is keyed by the row index of the upload and is only
replaced by a new upload, while ``errors`` holds rejected edits keyed by
position in ``claims`` and is renumbered when a claim is deleted. Each caller holds
its own session; nothing is shared between sessions.
"""

import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .builder import MrfBuilder
from .config import ReportingConfig
from .exceptions import BatchParseError, IndexOutOfRangeError
from .loader import read_claims_file
from .models import BatchValidationResult, Claim, UpdateResult
from .mrf_models import MrfDocument
from .validator import ClaimValidator, normalize_record

logger = logging.getLogger(__name__)


def _renumber_after_delete(entries: Dict[int, Any], index: int) -> Dict[int, Any]:
    """Drop the entry at index and shift entries above it down by one."""
    renumbered = {}
    for key, value in entries.items():
        if key > index:
            renumbered[key - 1] = value
        elif key < index:
            renumbered[key] = value
    return renumbered


class ClaimsSession:
    """
    Mutable working set of claims and their validation errors.

    Indexes passed to ``update`` and ``delete`` refer to positions in
    ``claims``; ``source_rows`` gives the upload row each claim came from.
    A new upload replaces the whole working set.

    Example:
        >>> session = ClaimsSession()
        >>> session.load(rows)
        >>> session.update(0, {"negotiated_rate": "125.00"})
        >>> document = session.build_document()
    """

    def __init__(self, validator: Optional[ClaimValidator] = None):
        """
        Initialize an empty session.

        Args:
            validator: Validator used for uploads and edits. If not provided,
                      validates against the default claim schema.
        """
        self.validator = validator or ClaimValidator()
        self.claims: List[Claim] = []
        self.source_rows: List[int] = []
        self.upload_errors: Dict[int, List[str]] = {}
        self.errors: Dict[int, List[str]] = {}
        self.rejected_edits: Dict[int, Dict[str, Any]] = {}
        self.parse_error: Optional[str] = None

    def __len__(self) -> int:
        return len(self.claims)

    def load(self, records: Sequence[Any]) -> BatchValidationResult:
        """
        Replace the working set with a newly uploaded batch.

        Args:
            records: Raw records

        Returns:
            The batch validation result

        Raises:
            BatchParseError: If records is not a collection of records; the
                            session is left empty with parse_error set
        """
        self.clear()
        try:
            result = self.validator.validate_all(records)
        except BatchParseError as e:
            self.parse_error = str(e)
            raise

        self.claims = list(result.valid_records)
        self.source_rows = list(result.valid_indices)
        self.upload_errors = dict(result.errors_by_index)
        return result

    def load_file(self, path: Union[str, Path]) -> BatchValidationResult:
        """
        Replace the working set with the records of a CSV or JSON file.

        Raises:
            BatchParseError: If the file cannot be parsed
        """
        self.clear()
        try:
            records = read_claims_file(path)
        except BatchParseError as e:
            self.parse_error = str(e)
            raise
        return self.load(records)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.claims):
            raise IndexOutOfRangeError(index, len(self.claims))

    def update(self, index: int, fields: Mapping[str, Any]) -> UpdateResult:
        """
        Edit one claim.

        The fields are merged into the stored claim and the result is
        re-validated. A valid edit replaces the claim and clears its edit
        errors. Upload errors of rejected rows are never touched.
        A rejected edit leaves the stored claim as it was, records the new
        errors for the index and keeps the merged values in
        ``rejected_edits`` so they can still be shown to the user.

        Args:
            index: Position of the claim in the working set
            fields: Partial field values (raw, as entered)

        Returns:
            UpdateResult describing the outcome

        Raises:
            IndexOutOfRangeError: If index is not in the working set
        """
        self._check_index(index)

        merged = self.claims[index].model_dump()
        merged.update(normalize_record(fields))

        result = self.validator.validate(merged)
        if isinstance(result, list):
            self.errors[index] = result
            self.rejected_edits[index] = merged
            logger.debug("Rejected edit of claim %d: %s", index, "; ".join(result))
            return UpdateResult(index=index, success=False, claim=self.claims[index], errors=result, values=merged)

        self.claims[index] = result
        self.errors.pop(index, None)
        self.rejected_edits.pop(index, None)
        return UpdateResult(index=index, success=True, claim=result, values=merged)

    def delete(self, index: int) -> None:
        """
        Remove one claim and renumber the edit errors.

        Edit error entries above index move down by one, the entry at index
        is dropped and entries below it are unchanged.

        Raises:
            IndexOutOfRangeError: If index is not in the working set
        """
        self._check_index(index)

        del self.claims[index]
        del self.source_rows[index]
        self.errors = _renumber_after_delete(self.errors, index)
        self.rejected_edits = _renumber_after_delete(self.rejected_edits, index)

    def clear(self) -> None:
        """Empty the working set."""
        self.claims = []
        self.source_rows = []
        self.upload_errors = {}
        self.errors = {}
        self.rejected_edits = {}
        self.parse_error = None

    def build_document(
        self,
        config: Optional[ReportingConfig] = None,
        as_of: Optional[date] = None
    ) -> MrfDocument:
        """
        Aggregate the current claims into an MRF document.

        Raises:
            EmptyInputError: If the working set is empty
        """
        return MrfBuilder(config).build(self.claims, as_of=as_of)
