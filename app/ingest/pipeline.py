"""AdPulse — Ingestion Pipeline Orchestrator.

Runs the persistence half of an upload:
  normalize → create upload (processing) → commit rows in batches → finalize

Rows are written in sequential batches of at most BATCH_SIZE operations. A
batch that fails is retried with exponential backoff; if it still fails its
rows are counted in ``failed_record_count`` and the next batch proceeds.
"""

import asyncio
import json
import math
import time
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from app.config import settings
from app.core.field_registry import CsvSchema, META_ADS
from app.ingest.normalizer import NormalizedRow, compute_date_range, normalize_rows
from app.models.ingest_models import ProgressEvent
from app.models.upload_models import UploadRecord, UploadStatus
from app.store.record_store import RecordStore, StoreError, WriteBatch
from app.core.logging import get_logger

logger = get_logger("ingest.pipeline")

# Kept under the store's hard ceiling of 500 writes per batch
BATCH_SIZE = 400

ProgressCallback = Callable[[ProgressEvent], None]


def _emit(on_progress: Optional[ProgressCallback], event: ProgressEvent) -> None:
    if on_progress is None:
        return
    try:
        on_progress(event)
    except Exception as e:
        logger.warning(f"Progress callback failed at {event.stage} {event.percent}%: {e}")


def _build_row(
    schema: CsvSchema,
    row: NormalizedRow,
    store: RecordStore,
    upload: UploadRecord,
    row_number: int,
):
    return schema.row_model(
        id=store.new_id(),
        upload_id=upload.id,
        user_id=upload.user_id,
        row_number=row_number,
        created_at=upload.uploaded_at,
        extra_json=json.dumps(row.extra),
        **row.fields,
    )


async def commit_with_retry(batch: WriteBatch, upload_id: str, batch_no: int) -> bool:
    """Commit one batch, retrying with exponential backoff. Returns success."""
    max_attempts = max(settings.batch_max_retries, 1)
    for attempt in range(1, max_attempts + 1):
        try:
            batch.commit()
            return True
        except StoreError as e:
            if attempt < max_attempts:
                wait = settings.batch_retry_base_delay * (2 ** (attempt - 1))
                logger.warning(
                    f"Batch {batch_no} commit failed: {e}. Retrying in {wait}s (attempt {attempt}/{max_attempts})",
                    extra={"upload_id": upload_id, "batch": batch_no},
                )
                await asyncio.sleep(wait)
                continue
            logger.error(
                f"Batch {batch_no} dropped after {max_attempts} attempts: {e}",
                extra={"upload_id": upload_id, "batch": batch_no},
            )
    return False


async def ingest(
    store: RecordStore,
    rows: List[Dict[str, str]],
    user_id: str,
    file_name: str,
    schema: CsvSchema = META_ADS,
    mapping: Optional[Dict[str, str]] = None,
    file_size: int = 0,
    on_progress: Optional[ProgressCallback] = None,
) -> UploadRecord:
    """Persist parsed CSV rows as one upload and return its final record."""
    started = time.monotonic()
    upload = UploadRecord(
        id=store.new_id(),
        user_id=user_id,
        schema_key=schema.key,
        file_name=file_name,
        file_size=file_size,
        uploaded_at=datetime.now(timezone.utc),
        column_mapping_json=json.dumps(mapping or {}),
    )
    log_extra = {"upload_id": upload.id, "user_id": user_id, "schema_key": schema.key}

    # ── Structural failure: nothing to persist ──
    if not rows:
        upload.transition(UploadStatus.FAILED, "No data rows found")
        store.put(upload)
        logger.warning(f"Upload {file_name} has no data rows", extra=log_extra)
        _emit(on_progress, ProgressEvent(upload_id=upload.id, stage="failed", percent=100, message=upload.error_message))
        return upload

    # ── Step 1: Normalize ──
    _emit(on_progress, ProgressEvent(upload_id=upload.id, stage="normalizing", percent=10))
    normalized = normalize_rows(rows, schema, mapping, fallback_date=upload.uploaded_at.strftime("%Y-%m-%d"))
    date_range = compute_date_range(normalized, schema)
    if date_range:
        upload.date_range_start, upload.date_range_end = date_range

    # ── Step 2: Register the upload before any row exists ──
    store.put(upload)
    logger.info(f"Ingesting {len(normalized)} {schema.key} rows from {file_name}", extra=log_extra)

    committed = 0
    failed = 0
    try:
        # ── Step 3: Sequential batch commits ──
        total_batches = math.ceil(len(normalized) / BATCH_SIZE)

        for batch_no, start in enumerate(range(0, len(normalized), BATCH_SIZE), 1):
            chunk = normalized[start : start + BATCH_SIZE]
            batch = store.batch()
            for offset, row in enumerate(chunk):
                batch.set(_build_row(schema, row, store, upload, start + offset))

            if await commit_with_retry(batch, upload.id, batch_no):
                committed += len(chunk)
            else:
                failed += len(chunk)

            _emit(
                on_progress,
                ProgressEvent(
                    upload_id=upload.id,
                    stage="persisting",
                    percent=10 + round(85 * batch_no / total_batches),
                    message=f"Batch {batch_no}/{total_batches}",
                ),
            )

        # ── Step 4: Finalize ──
        upload.record_count = committed
        upload.failed_record_count = failed
        if committed == 0:
            upload.transition(UploadStatus.FAILED, f"All {failed} rows failed to save")
        else:
            upload.transition(UploadStatus.COMPLETED)
        store.put(upload)
    except Exception as e:
        logger.exception(f"Ingestion of {file_name} aborted: {e}", extra=log_extra)
        if upload.status == UploadStatus.PROCESSING.value:
            # Rows already committed stay stored and counted
            upload.record_count = committed
            upload.transition(UploadStatus.FAILED, str(e) or e.__class__.__name__)
            try:
                store.put(upload)
            except StoreError as store_error:
                # The stale-upload sweep will fail it later
                logger.error(f"Could not mark upload failed: {store_error}", extra=log_extra)
        _emit(on_progress, ProgressEvent(upload_id=upload.id, stage="failed", percent=100, message=upload.error_message or ""))
        raise

    duration_ms = round((time.monotonic() - started) * 1000)
    logger.info(
        f"Upload {upload.status}: {upload.record_count} saved, {upload.failed_record_count} lost",
        extra={**log_extra, "duration_ms": duration_ms},
    )
    _emit(
        on_progress,
        ProgressEvent(upload_id=upload.id, stage=upload.status, percent=100, message=upload.error_message or ""),
    )
    return upload
