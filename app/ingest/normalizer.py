"""AdPulse — Raw CSV Row → Canonical Record Normalizer.

Maps each raw ``{header: cell}`` row onto a schema's canonical fields and
coerces cell strings by field type. Coercion never raises: unparseable
numbers become 0, empty text becomes "", unparseable dates fall back to the
upload day.

Normalization is a pure function of (row, schema, mapping, fallback date),
so the same upload always produces the same records.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from app.core.field_registry import CsvSchema, FieldDefinition, FieldType, META_ADS
from app.ingest.header_validator import find_header

MISSING_SENTINELS = {"", "n/a", "-", "--"}

# Multi-character currency markers, including the mojibake of ₹ read as cp1252
CURRENCY_TOKENS = ("â‚¹", "Rs.", "INR", "USD", "EUR", "GBP")
STRIP_CHARS = re.compile(r"[,%₹$€£¥\s]")

# Integer columns are stored as signed 64-bit
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1

DATE_FORMATS = [
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d/%m/%Y",
    "%m/%d/%Y",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %b %Y",
    "%d %B %Y",
    "%Y%m%d",
]


@dataclass
class NormalizedRow:
    """One canonical record, before ownership fields are attached."""

    fields: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, str] = field(default_factory=dict)
    defaulted: List[str] = field(default_factory=list)  # fields that fell back


# ─────────────────────────────────────────────
# CELL COERCION
# ─────────────────────────────────────────────


def _is_missing(value: Optional[str]) -> bool:
    return value is None or value.strip().lower() in MISSING_SENTINELS


def parse_number(value: Optional[str]) -> float:
    """Parse a numeric cell like '₹2,325.00', '3.2%' or '(45)'. Returns 0.0 on failure."""
    if _is_missing(value):
        return 0.0
    cleaned = value.strip()
    for token in CURRENCY_TOKENS:
        cleaned = cleaned.replace(token, "")
    cleaned = STRIP_CHARS.sub("", cleaned)

    negative = cleaned.startswith("(") and cleaned.endswith(")")
    if negative:
        cleaned = cleaned[1:-1]
    try:
        number = float(cleaned)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return -number if negative else number


def parse_date(value: Optional[str]) -> Optional[str]:
    """Parse a calendar date into YYYY-MM-DD, or None if unrecognised."""
    if _is_missing(value):
        return None
    text = value.strip()
    try:
        return datetime.fromisoformat(text).strftime("%Y-%m-%d")
    except ValueError:
        pass
    # Shopify style "2023-01-01 10:15:30 +0530": keep the date part
    for candidate in (text, text.split()[0], text.split("T")[0]):
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(candidate, fmt).strftime("%Y-%m-%d")
            except ValueError:
                continue
    return None


def parse_bool(value: Optional[str]) -> bool:
    return not _is_missing(value) and value.strip().lower() in ("yes", "true", "1", "y")


def coerce_cell(definition: FieldDefinition, value: Optional[str], fallback_date: str) -> tuple[Any, bool]:
    """Coerce one cell. Returns (value, fell_back)."""
    if definition.is_numeric:
        number = parse_number(value)
        if definition.field_type == FieldType.INTEGER:
            number = max(INT64_MIN, min(int(number), INT64_MAX))
        return number, False
    if definition.field_type == FieldType.DATE:
        parsed = parse_date(value)
        return (parsed, False) if parsed else (fallback_date, True)
    if definition.field_type == FieldType.BOOLEAN:
        return parse_bool(value), False
    return (value or "").strip(), False


# ─────────────────────────────────────────────
# SOURCE RESOLUTION
# ─────────────────────────────────────────────


def build_source_map(
    headers: Sequence[str],
    schema: CsvSchema,
    mapping: Optional[Dict[str, str]] = None,
) -> Dict[str, str]:
    """Decide which CSV header feeds each canonical field.

    Precedence: literal canonical header, then the explicit mapping, then a
    case-insensitive canonical or synonym match. An explicit mapping may
    point at a header that already feeds another field; otherwise each
    header feeds at most one field, and required fields claim headers
    before optional ones.
    """
    mapping = mapping or {}
    sources: Dict[str, str] = {}
    claimed: set = set()

    for f in schema.fields:
        if f.header in headers:
            sources[f.header] = f.header
            claimed.add(f.header)

    for column, header in mapping.items():
        if column in sources or schema.field(column) is None:
            continue
        if header in headers:
            sources[column] = header
            claimed.add(header)

    ordered = [f for f in schema.fields if f.required] + [f for f in schema.fields if not f.required]
    for f in ordered:
        if f.header in sources:
            continue
        for name in [f.header] + f.synonyms:
            header = find_header(name, headers, exclude=claimed)
            if header is not None:
                sources[f.header] = header
                claimed.add(header)
                break

    return sources


# ─────────────────────────────────────────────
# ROW NORMALIZATION
# ─────────────────────────────────────────────


def normalize_row(
    row: Dict[str, str],
    schema: CsvSchema = META_ADS,
    mapping: Optional[Dict[str, str]] = None,
    fallback_date: Optional[str] = None,
    sources: Optional[Dict[str, str]] = None,
) -> NormalizedRow:
    """Produce the canonical record for one raw row.

    ``sources`` may be precomputed with ``build_source_map`` for a whole file;
    otherwise it is derived from this row's keys.
    """
    if fallback_date is None:
        fallback_date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    if sources is None:
        sources = build_source_map(list(row.keys()), schema, mapping)

    result = NormalizedRow()
    for definition in schema.fields:
        source = sources.get(definition.header)
        raw = row.get(source) if source is not None else None
        value, fell_back = coerce_cell(definition, raw, fallback_date)
        result.fields[definition.name] = value
        if fell_back:
            result.defaulted.append(definition.name)

    used = set(sources.values())
    result.extra = {h: (v or "") for h, v in row.items() if h and h not in used}
    return result


def normalize_rows(
    rows: List[Dict[str, str]],
    schema: CsvSchema = META_ADS,
    mapping: Optional[Dict[str, str]] = None,
    fallback_date: Optional[str] = None,
) -> List[NormalizedRow]:
    """Normalize a whole file, resolving header sources once."""
    if not rows:
        return []
    if fallback_date is None:
        fallback_date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    sources = build_source_map(list(rows[0].keys()), schema, mapping)
    return [normalize_row(r, schema, mapping, fallback_date, sources) for r in rows]


def compute_date_range(rows: List[NormalizedRow], schema: CsvSchema) -> Optional[tuple[str, str]]:
    """Lexicographic min/max of the schema's YYYY-MM-DD date field."""
    dates = [r.fields.get(schema.date_field) for r in rows]
    dates = [d for d in dates if d]
    if not dates:
        return None
    return min(dates), max(dates)


def preview_warnings(rows: List[NormalizedRow], schema: CsvSchema) -> List[str]:
    """Advisory notes shown before the user confirms an upload."""
    warnings: List[str] = []
    defaulted_dates = sum(1 for r in rows if schema.date_field in r.defaulted)
    if defaulted_dates:
        warnings.append(f"{defaulted_dates} rows have an unreadable date and will use the upload date.")

    if schema.key == "meta_ads":
        if any(r.fields.get("spend", 0) == 0 for r in rows):
            warnings.append("Some rows have 0 amount spent.")
        if any(r.fields.get("impressions", 0) < 100 for r in rows):
            warnings.append("Some campaigns have very low impressions (<100).")
    elif schema.key == "shopify_orders":
        if any(r.fields.get("total", 0) == 0 for r in rows):
            warnings.append("Some order lines have a total of 0.")
    elif schema.key == "shipping_orders":
        if any(not r.fields.get("courier_company") for r in rows):
            warnings.append("Some shipments have no courier company.")
        if any(r.fields.get("charged_weight", 0) < r.fields.get("weight", 0) for r in rows):
            warnings.append("Some shipments are charged for less than their declared weight.")
    return warnings
