from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Optional

from loguru import logger
from sqlalchemy import delete
from sqlalchemy.orm import Session, sessionmaker

from clockbot.core.types import PendingSelection
from clockbot.db.models import PendingSelectionRow
from clockbot.db.session import session_scope


def _utc_naive(value: datetime) -> datetime:
    # sqlite keeps no offset; everything in the table is naive UTC
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _now(now: Optional[datetime]) -> datetime:
    return _utc_naive(now or datetime.now(timezone.utc))


def _to_selection(row: PendingSelectionRow) -> PendingSelection:
    return PendingSelection.from_dict(json.loads(row.payload_json))


def _delete_row(session: Session, selection_id: str) -> bool:
    result = session.execute(delete(PendingSelectionRow).where(PendingSelectionRow.id == selection_id))
    return int(getattr(result, "rowcount", 0) or 0) == 1


class SqlPendingStore:
    """Pending selections in a SQL table, shared by every process that opens the same database."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    def put(self, selection: PendingSelection) -> None:
        with session_scope(self.session_factory) as session:
            session.merge(
                PendingSelectionRow(
                    id=selection.id,
                    owner_id=selection.owner_id,
                    payload_json=json.dumps(selection.to_dict(), ensure_ascii=False),
                    created_at=_utc_naive(selection.created_at),
                    expires_at=_utc_naive(selection.expires_at),
                )
            )

    def get(self, selection_id: str, now: Optional[datetime] = None) -> PendingSelection | None:
        current = _now(now)
        with session_scope(self.session_factory) as session:
            row = session.get(PendingSelectionRow, selection_id)
            if row is None:
                return None
            if _utc_naive(row.expires_at) < current:
                _delete_row(session, selection_id)
                return None
            return _to_selection(row)

    def take(self, selection_id: str, now: Optional[datetime] = None) -> PendingSelection | None:
        current = _now(now)
        with session_scope(self.session_factory) as session:
            row = session.get(PendingSelectionRow, selection_id)
            if row is None:
                return None
            selection = _to_selection(row)
            expired = _utc_naive(row.expires_at) < current
            # another process may have deleted it since the read
            if not _delete_row(session, selection_id) or expired:
                return None
            return selection

    def prune(self, now: Optional[datetime] = None) -> int:
        current = _now(now)
        with session_scope(self.session_factory) as session:
            result = session.execute(
                delete(PendingSelectionRow).where(PendingSelectionRow.expires_at < current)
            )
            removed = int(getattr(result, "rowcount", 0) or 0)
        if removed:
            logger.debug("pending_repo: pruned {} expired selections", removed)
        return removed
