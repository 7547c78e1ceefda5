"""Persisted user state: symptom log history and action checklist.

Two independent JSON records in the stored_records table. Reads are
forgiving: anything that fails to decode falls back to the empty or
default state instead of raising.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy.orm import Session

from ..models.stored_record import StoredRecordModel
from .symptom_history import MAX_LOGS, SymptomLog, default_actions, normalize_actions

logger = logging.getLogger(__name__)

LOG_RECORD_KEY = "kafun-symptom-log-v1"
ACTION_RECORD_KEY = "kafun-action-check-v1"


class LocalStore:
    """Read/write-through access to the stored_records key-value table."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def _read(self, key: str) -> Any:
        """Return the decoded JSON for key, or None if absent or undecodable."""
        db = self._session_factory()
        try:
            row = db.query(StoredRecordModel).filter_by(key=key).first()
        finally:
            db.close()
        if row is None:
            return None
        try:
            return json.loads(row.value)
        except (json.JSONDecodeError, TypeError) as e:
            logger.info("Stored record %s is unreadable, resetting: %s", key, e)
            return None

    def _write(self, key: str, value: Any) -> None:
        payload = json.dumps(value, ensure_ascii=False)
        db = self._session_factory()
        try:
            existing = db.query(StoredRecordModel).filter_by(key=key).first()
            if existing:
                existing.value = payload
                existing.updated_at = datetime.now(timezone.utc)
            else:
                db.add(StoredRecordModel(
                    key=key,
                    value=payload,
                    updated_at=datetime.now(timezone.utc),
                ))
            db.commit()
        finally:
            db.close()

    def load_logs(self) -> list[SymptomLog]:
        raw = self._read(LOG_RECORD_KEY)
        if not isinstance(raw, list):
            if raw is not None:
                logger.info("Stored symptom log is not a list, resetting")
            return []
        logs: list[SymptomLog] = []
        seen: set[str] = set()
        for item in raw:
            try:
                log = SymptomLog.from_dict(item)
            except (KeyError, TypeError, ValueError) as e:
                logger.info("Dropping invalid stored log entry: %s", e)
                continue
            if log.date in seen:
                continue
            seen.add(log.date)
            logs.append(log)
        return logs[:MAX_LOGS]

    def save_logs(self, logs: list[SymptomLog]) -> None:
        self._write(LOG_RECORD_KEY, [log.to_dict() for log in logs[:MAX_LOGS]])

    def load_actions(self) -> dict[str, bool]:
        raw = self._read(ACTION_RECORD_KEY)
        if raw is None:
            return default_actions()
        return normalize_actions(raw)

    def save_actions(self, actions: dict[str, bool]) -> None:
        self._write(ACTION_RECORD_KEY, normalize_actions(actions))
