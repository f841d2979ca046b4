"""AdPulse — Upload History Service.

Listing, cascading deletion and export of uploads, plus the downloadable CSV
template for each schema.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

import pandas as pd

from app.core.field_registry import CsvSchema, get_schema
from app.ingest.pipeline import BATCH_SIZE
from app.models.row_models import RowRecord
from app.models.upload_models import UploadRecord, UploadStatus
from app.store.record_store import RecordStore, StoreError
from app.core.logging import get_logger

logger = get_logger("services.uploads")

EXPORT_FORMATS = {"csv": "text/csv", "json": "application/json"}


class UploadNotFound(Exception):
    """Raised when an upload does not exist or belongs to another user."""


@dataclass
class ExportFile:
    filename: str
    media_type: str
    content: str


def list_uploads(store: RecordStore, user_id: str, schema_key: Optional[str] = None) -> List[UploadRecord]:
    """All uploads of a user, newest first."""
    conditions = [UploadRecord.user_id == user_id]
    if schema_key:
        conditions.append(UploadRecord.schema_key == schema_key)
    uploads = store.query(UploadRecord, *conditions, order_by=UploadRecord.uploaded_at.desc())  # type: ignore
    logger.info(f"Retrieved {len(uploads)} uploads", extra={"user_id": user_id})
    return uploads


def get_upload(store: RecordStore, user_id: str, upload_id: str) -> UploadRecord:
    upload = store.get(UploadRecord, upload_id)
    if upload is None or upload.user_id != user_id:
        raise UploadNotFound(f"Upload {upload_id} not found")
    return upload


def get_upload_rows(store: RecordStore, upload: UploadRecord) -> List[RowRecord]:
    """Rows tagged with this upload, in source CSV order."""
    schema = get_schema(upload.schema_key)
    if schema is None:
        return []
    model = schema.row_model
    return store.query(
        model,
        model.upload_id == upload.id,
        model.user_id == upload.user_id,
        order_by=model.row_number,
    )


def delete_upload(store: RecordStore, user_id: str, upload_id: str) -> bool:
    """Delete an upload and every row tagged with it.

    Rows go first, in batches, and the upload record last: an interrupted
    delete can leave an upload with fewer rows but never rows without an
    upload.
    """
    try:
        upload = get_upload(store, user_id, upload_id)
    except UploadNotFound:
        logger.warning(f"Delete refused: upload {upload_id} not found or not owned", extra={"user_id": user_id})
        return False

    schema = get_schema(upload.schema_key)
    try:
        rows = get_upload_rows(store, upload)
        for start in range(0, len(rows), BATCH_SIZE):
            batch = store.batch()
            for row in rows[start : start + BATCH_SIZE]:
                batch.delete(schema.row_model, row.id)
            batch.commit()

        batch = store.batch()
        batch.delete(UploadRecord, upload.id)
        batch.commit()
    except StoreError as e:
        logger.error(f"Delete of upload {upload_id} failed: {e}", extra={"upload_id": upload_id, "user_id": user_id})
        return False

    logger.info(f"Deleted upload and {len(rows)} rows", extra={"upload_id": upload_id, "user_id": user_id})
    return True


def rows_to_csv(rows: List[RowRecord], schema: CsvSchema) -> str:
    """Render rows under the schema's canonical headers."""
    data = [[getattr(r, f.name) for f in schema.fields] for r in rows]
    df = pd.DataFrame(data, columns=schema.headers)
    return df.to_csv(index=False, lineterminator="\n")


def export_upload(store: RecordStore, user_id: str, upload_id: str, fmt: str = "csv") -> ExportFile:
    """Build a downloadable CSV or JSON file holding one upload's rows."""
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}")

    upload = get_upload(store, user_id, upload_id)
    schema = get_schema(upload.schema_key)
    rows = get_upload_rows(store, upload)

    if fmt == "csv":
        content = rows_to_csv(rows, schema)
    else:
        content = json.dumps([r.to_document() for r in rows], indent=2)

    today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    filename = f"adpulse_export_{Path(upload.file_name).stem or upload.id}_{today}.{fmt}"
    logger.info(f"Exported {len(rows)} rows as {fmt}", extra={"upload_id": upload_id, "user_id": user_id})
    return ExportFile(filename=filename, media_type=EXPORT_FORMATS[fmt], content=content)


def generate_template(schema: CsvSchema) -> str:
    """Canonical header row plus sample rows showing the expected value formats."""
    df = pd.DataFrame(schema.template_rows, columns=schema.headers)
    return df.to_csv(index=False, lineterminator="\n")


def fail_stale_uploads(store: RecordStore, older_than_minutes: int, now: Optional[datetime] = None) -> int:
    """Mark uploads stuck in processing as failed. Returns how many were changed.

    An upload only stays in processing when its pipeline died before the
    final update (process restart, lost connection).
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(minutes=older_than_minutes)
    stale = [
        u
        for u in store.query(UploadRecord, UploadRecord.status == UploadStatus.PROCESSING.value)
        if _as_utc(u.uploaded_at) < cutoff
    ]
    for upload in stale:
        upload.transition(
            UploadStatus.FAILED,
            f"Processing did not finish within {older_than_minutes} minutes",
        )
        store.put(upload)
        logger.warning("Marked stale upload as failed", extra={"upload_id": upload.id, "user_id": upload.user_id})
    return len(stale)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands datetimes back without tzinfo
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
