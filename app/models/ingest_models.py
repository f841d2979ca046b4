"""AdPulse — Ingestion Result Schemas."""

from typing import Dict, List

from pydantic import BaseModel

EMPTY_FILE = "Empty file"


class HeaderValidation(BaseModel):
    """Outcome of checking a CSV header row against a schema."""

    is_valid: bool
    missing_headers: List[str] = []
    matched: Dict[str, str] = {}  # required column → CSV header satisfying it


class ProgressEvent(BaseModel):
    """Emitted by the ingestion pipeline as it advances (0–100)."""

    upload_id: str = ""
    stage: str  # "normalizing" | "persisting" | "completed" | "failed"
    percent: int
    message: str = ""


class ValidationReport(BaseModel):
    """Response body for POST /uploads/validate."""

    schema_key: str
    is_valid: bool
    headers: List[str] = []
    missing_headers: List[str] = []
    matched: Dict[str, str] = {}
    candidates: Dict[str, List[str]] = {}
    suggested_mapping: Dict[str, str] = {}
    row_count: int = 0
    parse_errors: List[str] = []
    warnings: List[str] = []
