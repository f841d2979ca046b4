"""AdPulse — Upload API Routes."""

import json
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import Response

from app.api.deps import get_current_user_id, get_store, resolve_schema
from app.config import settings
from app.ingest.column_mapping import auto_mapping, resolve_column_mapping, unresolved_columns
from app.ingest.csv_parser import CsvParseError, decode_csv_bytes, parse_csv
from app.ingest.header_validator import validate_headers
from app.ingest.normalizer import normalize_rows, preview_warnings
from app.ingest.pipeline import ingest
from app.models.ingest_models import ValidationReport
from app.models.upload_models import UploadRead
from app.services.upload_service import (
    UploadNotFound,
    delete_upload,
    export_upload,
    generate_template,
    get_upload,
    list_uploads,
)
from app.store.record_store import RecordStore
from app.core.logging import get_logger

logger = get_logger("api.uploads")

router = APIRouter(tags=["Uploads"])


# ── Helpers ──


async def _read_csv_text(file: UploadFile) -> tuple[str, int]:
    """Read an uploaded file as text, enforcing type and size limits."""
    if file.filename and not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Please upload a CSV file")
    data = await file.read()
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File exceeds the {settings.max_upload_bytes // (1024 * 1024)} MB upload limit",
        )
    try:
        return decode_csv_bytes(data), len(data)
    except CsvParseError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _parse_mapping(raw: Optional[str]) -> Dict[str, str]:
    """Decode the optional ``column_mapping`` form field (a JSON object)."""
    if not raw:
        return {}
    try:
        mapping = json.loads(raw)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="column_mapping must be a JSON object")
    if not isinstance(mapping, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in mapping.items()
    ):
        raise HTTPException(status_code=400, detail="column_mapping must map column names to CSV headers")
    return mapping


def _parse(csv_text: str):
    try:
        return parse_csv(csv_text)
    except CsvParseError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ── Endpoints ──


@router.get("/templates/{schema_key}")
async def download_template(schema_key: str):
    """Download a CSV template with the canonical headers and sample rows."""
    schema = resolve_schema(schema_key)
    return Response(
        content=generate_template(schema),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="adpulse_{schema.key}_template.csv"'},
    )


@router.post("/uploads/validate", response_model=ValidationReport)
async def validate_upload(
    file: UploadFile = File(...),
    schema_key: str = Query("meta_ads"),
    user_id: str = Depends(get_current_user_id),
):
    """Check headers, propose column mappings and preview warnings without saving."""
    schema = resolve_schema(schema_key)
    csv_text, _ = await _read_csv_text(file)
    parsed = _parse(csv_text)

    validation = validate_headers(parsed.headers or csv_text, schema)
    candidates = resolve_column_mapping(
        validation.missing_headers,
        parsed.headers,
        schema,
        exclude=validation.matched.values(),
    )
    suggested = auto_mapping(candidates)
    normalized = normalize_rows(parsed.rows, schema, suggested)

    logger.info(
        f"Validated {file.filename}: valid={validation.is_valid}, {len(parsed.rows)} rows",
        extra={"user_id": user_id},
    )
    return ValidationReport(
        schema_key=schema.key,
        is_valid=validation.is_valid,
        headers=parsed.headers,
        missing_headers=validation.missing_headers,
        matched=validation.matched,
        candidates=candidates,
        suggested_mapping=suggested,
        row_count=len(parsed.rows),
        parse_errors=parsed.errors,
        warnings=preview_warnings(normalized, schema),
    )


@router.post("/uploads", response_model=UploadRead)
async def create_upload(
    file: UploadFile = File(...),
    schema_key: str = Query("meta_ads"),
    column_mapping: Optional[str] = Form(None),
    user_id: str = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    """Parse, validate and persist a CSV upload.

    Missing required columns must be covered by ``column_mapping``;
    otherwise the request is rejected with the mapping candidates.
    """
    schema = resolve_schema(schema_key)
    mapping = _parse_mapping(column_mapping)
    csv_text, file_size = await _read_csv_text(file)
    parsed = _parse(csv_text)

    if parsed.headers:
        validation = validate_headers(parsed.headers, schema)
        unresolved = unresolved_columns(validation.missing_headers, mapping, parsed.headers)
        if unresolved:
            raise HTTPException(
                status_code=422,
                detail={
                    "message": f"Missing required columns: {', '.join(unresolved)}",
                    "missing_headers": unresolved,
                    "candidates": resolve_column_mapping(
                        unresolved, parsed.headers, schema, exclude=validation.matched.values()
                    ),
                },
            )
    if parsed.errors:
        logger.warning(f"{len(parsed.errors)} malformed rows skipped in {file.filename}", extra={"user_id": user_id})

    try:
        upload = await ingest(
            store,
            parsed.rows,
            user_id=user_id,
            file_name=file.filename or "upload.csv",
            schema=schema,
            mapping=mapping,
            file_size=file_size,
        )
    except Exception as e:
        logger.error(f"Upload failed: {e}", extra={"user_id": user_id})
        raise HTTPException(status_code=500, detail=f"Upload failed: {str(e)}")

    return UploadRead.from_record(upload)


@router.get("/uploads", response_model=List[UploadRead])
async def get_uploads(
    schema_key: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    """Upload history for the calling user, newest first."""
    return [UploadRead.from_record(u) for u in list_uploads(store, user_id, schema_key)]


@router.get("/uploads/{upload_id}", response_model=UploadRead)
async def get_upload_detail(
    upload_id: str,
    user_id: str = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    try:
        return UploadRead.from_record(get_upload(store, user_id, upload_id))
    except UploadNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/uploads/{upload_id}")
async def remove_upload(
    upload_id: str,
    user_id: str = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    """Delete an upload together with all of its rows."""
    if not delete_upload(store, user_id, upload_id):
        raise HTTPException(status_code=404, detail=f"Upload {upload_id} not found or could not be deleted")
    return {"status": "success", "deleted": True, "upload_id": upload_id}


@router.get("/uploads/{upload_id}/export")
async def export_upload_data(
    upload_id: str,
    format: str = Query("csv", pattern="^(csv|json)$"),
    user_id: str = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    """Download an upload's rows as CSV or JSON."""
    try:
        export = export_upload(store, user_id, upload_id, format)
    except UploadNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )
