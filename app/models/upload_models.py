"""AdPulse — Upload Metadata Models.

One UploadRecord per ingestion attempt. Its status only moves forward:
processing → completed | failed.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel
from sqlmodel import SQLModel, Field


class UploadStatus(str, Enum):
    """Lifecycle state of an upload."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


ALLOWED_TRANSITIONS = {
    UploadStatus.PROCESSING: {UploadStatus.COMPLETED, UploadStatus.FAILED},
    UploadStatus.COMPLETED: set(),
    UploadStatus.FAILED: set(),
}


class UploadRecord(SQLModel, table=True):
    """Metadata for one uploaded CSV file."""

    __tablename__ = "uploads"

    id: str = Field(primary_key=True)
    user_id: str = Field(index=True)
    schema_key: str = Field(default="meta_ads", index=True, description="meta_ads | shopify_orders | shipping_orders")
    file_name: str = Field(default="")
    file_size: int = Field(default=0)
    uploaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
    status: str = Field(default=UploadStatus.PROCESSING.value, index=True)
    record_count: int = Field(default=0, description="Rows committed to the store")
    failed_record_count: int = Field(default=0, description="Rows whose batch never committed")
    date_range_start: Optional[str] = Field(default=None, description="YYYY-MM-DD")
    date_range_end: Optional[str] = Field(default=None, description="YYYY-MM-DD")
    column_mapping_json: str = Field(default="{}", description="Required column → CSV header")
    error_message: Optional[str] = Field(default=None)

    @property
    def column_mapping(self) -> Dict[str, str]:
        return json.loads(self.column_mapping_json or "{}")

    def transition(self, new_status: UploadStatus, error_message: Optional[str] = None) -> None:
        """Move to a later lifecycle state; backward moves raise ValueError."""
        current = UploadStatus(self.status)
        if new_status not in ALLOWED_TRANSITIONS[current]:
            raise ValueError(f"Upload {self.id}: cannot move from {current.value} to {new_status.value}")
        self.status = new_status.value
        self.error_message = error_message if new_status == UploadStatus.FAILED else None


# ─────────────────────────────────────────────
# API SCHEMAS
# ─────────────────────────────────────────────


class DateRange(BaseModel):
    start: str
    end: str


class UploadRead(BaseModel):
    """Upload record as returned by the API."""

    id: str
    user_id: str
    schema_key: str
    file_name: str
    file_size: int = 0
    uploaded_at: datetime
    status: UploadStatus
    record_count: int = 0
    failed_record_count: int = 0
    date_range: Optional[DateRange] = None
    column_mapping: Dict[str, str] = {}
    error_message: Optional[str] = None

    @classmethod
    def from_record(cls, record: UploadRecord) -> "UploadRead":
        date_range = None
        if record.date_range_start and record.date_range_end:
            date_range = DateRange(start=record.date_range_start, end=record.date_range_end)
        return cls(
            id=record.id,
            user_id=record.user_id,
            schema_key=record.schema_key,
            file_name=record.file_name,
            file_size=record.file_size,
            uploaded_at=record.uploaded_at,
            status=UploadStatus(record.status),
            record_count=record.record_count,
            failed_record_count=record.failed_record_count,
            date_range=date_range,
            column_mapping=record.column_mapping,
            error_message=record.error_message,
        )
