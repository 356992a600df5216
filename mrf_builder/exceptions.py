"""
Error types raised by the MRF builder.

Validation problems on individual records are reported as data (see
``BatchValidationResult``); the exceptions here cover the failures that are
reported to the immediate caller.
"""

from typing import List, Optional


class MrfBuilderError(Exception):
    """Base class for all MRF builder errors."""


class FieldValidationError(MrfBuilderError, ValueError):
    """One record failed one or more field checks."""

    def __init__(self, messages: List[str], index: Optional[int] = None):
        self.messages = list(messages)
        self.index = index
        prefix = f"Record {index} is invalid" if index is not None else "Record is invalid"
        super().__init__(f"{prefix}: {'; '.join(self.messages)}")


class BatchParseError(MrfBuilderError):
    """The raw input could not be interpreted as a collection of records."""

    def __init__(self, message: str, source: Optional[str] = None):
        self.source = source
        if source:
            message = f"{message} ({source})"
        super().__init__(message)


class EmptyInputError(MrfBuilderError):
    """No valid claims were available to build a document from."""

    def __init__(self, message: str = "No valid claims to build an MRF document from"):
        super().__init__(message)


class IndexOutOfRangeError(MrfBuilderError, IndexError):
    """An update or delete referenced a record that is not in the working set."""

    def __init__(self, index: int, size: int):
        self.index = index
        self.size = size
        super().__init__(f"Claim index {index} is out of range for {size} claim(s)")
