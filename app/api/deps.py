"""AdPulse — Shared Route Dependencies."""

from fastapi import Header, HTTPException

from app.core.field_registry import CsvSchema, SCHEMAS, get_schema
from app.database import engine
from app.store.record_store import RecordStore


def get_store() -> RecordStore:
    """Dependency — the record store bound to the app database."""
    return RecordStore(engine)


def get_current_user_id(x_user_id: str = Header(..., description="Caller's user id")) -> str:
    """Dependency — the calling user, as forwarded by the auth layer."""
    if not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing user id")
    return x_user_id.strip()


def resolve_schema(schema_key: str) -> CsvSchema:
    schema = get_schema(schema_key)
    if schema is None:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown schema '{schema_key}'. Expected one of: {', '.join(SCHEMAS)}",
        )
    return schema
