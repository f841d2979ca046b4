"""AdPulse — Column Mapping Resolver.

Proposes CSV headers that could supply each missing required column.
Proposals are hints: a column is only mapped automatically when exactly one
header is a candidate, otherwise the choice is left to the user.
"""

from typing import Dict, Iterable, List, Optional, Sequence

from app.core.field_registry import CsvSchema, META_ADS
from app.models.ingest_models import EMPTY_FILE

# Shorter headers ("ID", "a") would substring-match almost anything
MIN_SUBSTRING_LEN = 3


def _substring_match(column: str, header: str) -> bool:
    col = column.strip().lower()
    head = header.strip().lower()
    if len(head) < MIN_SUBSTRING_LEN:
        return False
    return col in head or head in col


def resolve_column_mapping(
    missing_headers: Iterable[str],
    csv_headers: Sequence[str],
    schema: CsvSchema = META_ADS,
    exclude: Optional[Iterable[str]] = None,
) -> Dict[str, List[str]]:
    """Return candidate headers per missing column.

    Synonym-table hits come first, in synonym order; substring hits follow in
    header order. ``exclude`` removes headers already claimed elsewhere.
    """
    excluded = set(exclude or [])
    headers = [h for h in csv_headers if h not in excluded]
    candidates: Dict[str, List[str]] = {}

    for column in missing_headers:
        if column == EMPTY_FILE:
            continue
        definition = schema.field(column)
        found: List[str] = []

        for synonym in definition.synonyms if definition else []:
            for h in headers:
                if h.strip().lower() == synonym.lower() and h not in found:
                    found.append(h)

        for h in headers:
            if h not in found and _substring_match(column, h):
                found.append(h)

        candidates[column] = found

    return candidates


def auto_mapping(candidates: Dict[str, List[str]]) -> Dict[str, str]:
    """Map only the columns with a single unambiguous candidate."""
    return {column: options[0] for column, options in candidates.items() if len(options) == 1}


def unresolved_columns(
    missing_headers: Iterable[str],
    mapping: Dict[str, str],
    csv_headers: Sequence[str],
) -> List[str]:
    """Missing columns the mapping does not point at a real header."""
    present = set(csv_headers)
    return [c for c in missing_headers if mapping.get(c) not in present]
