"""
Loading raw claim records from CSV and JSON uploads.

Loaders only turn a file into a list of raw records; field validation is
left to ``mrf_builder.validator``. Input that cannot be read as records at
all raises ``BatchParseError``.
"""

import json
import logging
from pathlib import Path
from typing import IO, Any, Dict, List, Union

import pandas as pd

from .exceptions import BatchParseError

logger = logging.getLogger(__name__)

Source = Union[str, Path, IO]


def _source_name(source: Source) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    return getattr(source, "name", "<stream>")


def read_claims_csv(source: Source) -> List[Dict[str, Any]]:
    """
    Read a CSV file with a header row into raw records.

    Every value is kept as text; empty cells become empty strings and cells
    missing from short rows become None. Blank lines are skipped, and so are
    blank columns without a header, such as the one left by a trailing comma.

    Args:
        source: Path or open text stream

    Returns:
        One raw record per data row

    Raises:
        BatchParseError: If the file is empty, is malformed or has values
                        under an empty header
    """
    name = _source_name(source)
    try:
        df = pd.read_csv(source, dtype=str, keep_default_na=False, skip_blank_lines=True)
    except pd.errors.EmptyDataError as e:
        raise BatchParseError("CSV file is empty", source=name) from e
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise BatchParseError(f"Failed to parse CSV file: {e}", source=name) from e

    unnamed = [column for column in df.columns if str(column).startswith("Unnamed:")]
    for column in unnamed:
        if not df[column].fillna("").str.strip().eq("").all():
            raise BatchParseError("CSV has values under an empty column name", source=name)
    if unnamed:
        logger.debug("Dropping %d blank unnamed columns from %s", len(unnamed), name)
        df = df.drop(columns=unnamed)

    df.columns = [str(column).strip() for column in df.columns]
    df = df.astype(object).where(df.notna(), None)

    records = df.to_dict(orient="records")
    logger.info("Read %d claim rows from %s", len(records), name)
    return records


def parse_records(payload: Any, source: str = "<payload>") -> List[Any]:
    """
    Extract the record list from a decoded JSON payload.

    Accepts a bare list of records or an object with a ``claims`` list.

    Raises:
        BatchParseError: If the payload holds no record list
    """
    if isinstance(payload, dict) and "claims" in payload:
        payload = payload["claims"]
    if not isinstance(payload, list):
        raise BatchParseError(
            f"Expected a list of claim records, got {type(payload).__name__}",
            source=source
        )
    return payload


def read_claims_json(source: Source) -> List[Any]:
    """
    Read raw records from a JSON file.

    Raises:
        BatchParseError: If the file is not valid JSON or holds no record list
    """
    name = _source_name(source)
    try:
        if isinstance(source, (str, Path)):
            with open(source, 'r', encoding="utf-8") as f:
                payload = json.load(f)
        else:
            payload = json.load(source)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise BatchParseError(f"Failed to parse JSON file: {e}", source=name) from e

    records = parse_records(payload, source=name)
    logger.info("Read %d claim records from %s", len(records), name)
    return records


def read_claims_file(path: Union[str, Path]) -> List[Any]:
    """
    Read raw records from a .csv or .json file.

    Raises:
        FileNotFoundError: If the file does not exist
        BatchParseError: If the file cannot be parsed or has an unknown type
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Claims file not found: {file_path}")

    suffix = file_path.suffix.lower()
    if suffix == ".csv":
        return read_claims_csv(file_path)
    if suffix == ".json":
        return read_claims_json(file_path)
    raise BatchParseError(f"Unsupported claims file type '{suffix}'", source=str(file_path))
