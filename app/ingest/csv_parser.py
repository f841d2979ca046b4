"""AdPulse — CSV Parser.

Turns uploaded CSV text into ordered headers plus one ``{header: raw string}``
mapping per data row. Every cell stays a string: type coercion belongs to
the normalizer.
"""

import io
from dataclasses import dataclass, field
from typing import Dict, List

import pandas as pd

from app.core.logging import get_logger

logger = get_logger("ingest.csv_parser")

# Tried in order when decoding uploaded bytes
ENCODINGS = ("utf-8-sig", "cp1252")


class CsvParseError(Exception):
    """Raised when the file as a whole cannot be read as CSV."""


@dataclass
class ParsedCsv:
    headers: List[str] = field(default_factory=list)
    rows: List[Dict[str, str]] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def decode_csv_bytes(data: bytes) -> str:
    """Decode uploaded bytes, accepting UTF-8 (with or without BOM) and Windows-1252."""
    for encoding in ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise CsvParseError("File is not valid UTF-8 or Windows-1252 text")


def _clean_header(header: object) -> str:
    return str(header).replace("\ufeff", "").strip()


def read_headers(csv_text: str) -> List[str]:
    """Return the header row only, without parsing the body."""
    return parse_csv(csv_text.split("\n", 1)[0]).headers if csv_text.strip() else []


def parse_csv(csv_text: str) -> ParsedCsv:
    """Parse CSV text with the first row as header.

    Rows with more fields than the header are skipped and reported in
    ``errors``; blank lines are ignored. Only a file that cannot be tokenised
    at all raises ``CsvParseError``.
    """
    if not csv_text or not csv_text.strip():
        return ParsedCsv()

    bad_lines: List[List[str]] = []

    def _on_bad_line(line: List[str]) -> None:
        bad_lines.append(line)
        return None

    try:
        df = pd.read_csv(
            io.StringIO(csv_text),
            dtype=str,
            keep_default_na=False,
            na_filter=False,
            skip_blank_lines=True,
            engine="python",
            on_bad_lines=_on_bad_line,
        )
    except pd.errors.EmptyDataError:
        return ParsedCsv()
    except pd.errors.ParserError as e:
        raise CsvParseError(f"Could not parse CSV: {e}") from e

    headers = [_clean_header(c) for c in df.columns]
    df.columns = headers
    df = df.fillna("")

    errors = [
        f"Skipped malformed row with {len(line)} fields (expected {len(headers)}): "
        f"{','.join(line)[:80]}"
        for line in bad_lines
    ]
    rows = [{h: str(v) for h, v in record.items()} for record in df.to_dict(orient="records")]

    if errors:
        logger.warning(f"CSV parsed with {len(errors)} skipped rows")
    logger.info(f"Parsed {len(rows)} rows across {len(headers)} columns")
    return ParsedCsv(headers=headers, rows=rows, errors=errors)
