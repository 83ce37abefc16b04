"""Audit log for critical actions."""

from typing import Any

from verifund.storage.base import RecordStore


async def log_event(
    store: RecordStore,
    user_id: str | None,
    event_type: str,
    entity_type: str,
    entity_id: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> None:
    """Append to the audit log through the record store."""
    await store.insert_audit_event(user_id, event_type, entity_type, entity_id, metadata or {})
