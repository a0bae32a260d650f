"""
Repositories for the side ledgers: settlement markers and the audit log.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.models import AuditLogEntry, SettlementMarker
from app.repositories.base import BaseRepository


class SettlementMarkerRepository(BaseRepository[SettlementMarker]):
    """Paid/collected markers, keyed by settlement identity (initials)."""

    def __init__(self, db):
        super().__init__(SettlementMarker, db)

    def find_by_initials(self, initials: str) -> Optional[SettlementMarker]:
        return self.find_by_id(initials)

    def upsert(self, initials: str, amount, settled_at: datetime, note: Optional[str] = None) -> SettlementMarker:
        """Create the marker or overwrite the existing one for these initials."""
        marker = self.find_by_initials(initials)
        if marker is None:
            marker = self.add(SettlementMarker(initials=initials, amount=amount, note=note, settled_at=settled_at))
        else:
            marker.amount = amount
            marker.note = note
            marker.settled_at = settled_at
        return marker


class AuditRepository(BaseRepository[AuditLogEntry]):
    """Per-game audit trail, pruned to a fixed number of recent entries."""

    def __init__(self, db):
        super().__init__(AuditLogEntry, db)

    def append(
        self,
        game_id: str,
        action: str,
        details: Dict[str, Any],
        created_at: datetime,
        limit: int,
    ) -> AuditLogEntry:
        """Stage a new entry and drop anything beyond the newest `limit`."""
        entry = self.add(AuditLogEntry(
            game_id=game_id,
            action=action,
            details=details,
            created_at=created_at
        ))
        self.flush()

        stale = self.db.query(AuditLogEntry.id).filter(
            AuditLogEntry.game_id == game_id
        ).order_by(AuditLogEntry.id.desc()).offset(limit).all()
        if stale:
            self.db.query(AuditLogEntry).filter(
                AuditLogEntry.id.in_([row[0] for row in stale])
            ).delete(synchronize_session=False)
        return entry

    def recent(self, game_id: str, limit: Optional[int] = None) -> List[AuditLogEntry]:
        """Newest first."""
        query = self.db.query(AuditLogEntry).filter(
            AuditLogEntry.game_id == game_id
        ).order_by(AuditLogEntry.id.desc())
        if limit is not None:
            query = query.limit(limit)
        return query.all()
