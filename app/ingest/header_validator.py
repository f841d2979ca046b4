"""AdPulse — Header Validator.

Checks an uploaded header row against a schema's required columns. A column
counts as present when its canonical name or one of its synonyms appears,
ignoring case and position. Never raises: callers decide whether a missing
column blocks the upload or triggers manual mapping.
"""

from typing import Dict, List, Optional, Sequence, Union

from app.core.field_registry import CsvSchema, META_ADS
from app.ingest.csv_parser import CsvParseError, read_headers
from app.models.ingest_models import EMPTY_FILE, HeaderValidation
from app.core.logging import get_logger

logger = get_logger("ingest.headers")


def find_header(name: str, headers: Sequence[str], exclude: Optional[set] = None) -> Optional[str]:
    """Return the header matching ``name`` literally, else case-insensitively."""
    exclude = exclude or set()
    if name in headers and name not in exclude:
        return name
    wanted = name.strip().lower()
    for h in headers:
        if h not in exclude and h.strip().lower() == wanted:
            return h
    return None


def match_required_columns(headers: Sequence[str], schema: CsvSchema) -> Dict[str, str]:
    """Claim one distinct header per required column.

    Columns are resolved in the schema's priority order and, within a
    column, canonical name first then synonyms in table order. A header
    claimed by an earlier column is never reused.
    """
    claimed: set = set()
    matched: Dict[str, str] = {}
    for column in schema.required_columns:
        definition = schema.field(column)
        for name in [column] + (definition.synonyms if definition else []):
            header = find_header(name, headers, exclude=claimed)
            if header is not None:
                matched[column] = header
                claimed.add(header)
                break
    return matched


def validate_headers(
    source: Union[str, List[str]],
    schema: CsvSchema = META_ADS,
) -> HeaderValidation:
    """Validate raw CSV text (header = first line) or an already-parsed header list."""
    if isinstance(source, str):
        if not source.strip():
            return HeaderValidation(is_valid=False, missing_headers=[EMPTY_FILE])
        try:
            headers = read_headers(source)
        except CsvParseError as e:
            logger.warning(f"Header row unreadable: {e}")
            return HeaderValidation(is_valid=False, missing_headers=schema.required_columns)
    else:
        headers = [h.strip() for h in source]

    if not any(headers):
        return HeaderValidation(is_valid=False, missing_headers=[EMPTY_FILE])

    matched = match_required_columns(headers, schema)
    missing = [c for c in schema.required_columns if c not in matched]
    if missing:
        logger.info(f"{schema.key}: {len(missing)} required columns missing: {', '.join(missing)}")
    return HeaderValidation(is_valid=not missing, missing_headers=missing, matched=matched)
