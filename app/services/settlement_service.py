"""
Cross-game settlement report and paid/collected markers.

The report is recomputed from every game on each request. Markers are an
operator's note that a balance was handled; they are stored apart from the
games and never feed back into the amounts.
"""
import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from app.core import metrics
from app.core.exceptions import InvalidRequest, NotFound
from app.models import SettlementMarker
from app.repositories import SettlementMarkerRepository
from app.services.betting.settlement import (
    GameBreakdown,
    SettlementAggregator,
    SettlementIdentity,
    SettlementMark,
    SettlementReport,
    SettlementRow,
)
from app.services.game_service import GameService
from app.utils.money import Number, to_money
from app.utils.timezone import format_utc, utc_now

logger = logging.getLogger(__name__)


def _marker_key(initials: str) -> str:
    key = (initials or "").strip()
    if not key:
        raise InvalidRequest("Initials are required")
    return key


class SettlementService:
    """Service for the settle-up report across all games."""

    def __init__(self, db: Session, identity: Optional[SettlementIdentity] = None):
        self.db = db
        self.markers = SettlementMarkerRepository(db)
        self.game_service = GameService(db)
        self.aggregator = SettlementAggregator(identity)

    def build_report(self) -> SettlementReport:
        marks = {
            m.initials: SettlementMark(initials=m.initials, amount=m.amount, settled_at=m.settled_at)
            for m in self.markers.find_all()
        }
        report = self.aggregator.aggregate(self.game_service.snapshots(), marks)
        metrics.update_settlement_metrics(len(report.collect_from) + len(report.pay_out_to))
        return report

    def mark_settled(self, initials: str, amount: Number, note: Optional[str] = None) -> SettlementMarker:
        """
        Record that a player's balance was paid or collected.

        amount is the net balance acknowledged at the time; a later change
        to the underlying games shows up as changed_since_settled.
        """
        key = _marker_key(initials)
        marker = self.markers.upsert(key, to_money(amount), utc_now(), note)
        self.markers.save()
        logger.info(f"Marked {key} settled at ${marker.amount}")
        return marker

    def unmark_settled(self, initials: str) -> None:
        key = _marker_key(initials)
        marker = self.markers.find_by_initials(key)
        if marker is None:
            raise NotFound(f"No settlement marker for {key}", initials=key)
        self.markers.delete(marker)
        self.markers.save()
        logger.info(f"Cleared settlement marker for {key}")


def marker_to_dict(marker: SettlementMarker) -> Dict:
    return {
        "initials": marker.initials,
        "amount": float(marker.amount),
        "note": marker.note,
        "settled_at": format_utc(marker.settled_at),
    }


def _breakdown_to_dict(b: GameBreakdown) -> Dict:
    return {
        "game_id": b.game_id,
        "name": b.name,
        "squares_count": b.squares_count,
        "squares_cost": float(b.squares_cost),
        "squares_won": float(b.squares_won),
        "quarters_won": list(b.quarters_won),
        "bets_wagered": float(b.bets_wagered),
        "bets_won": float(b.bets_won),
        "bets_lost": float(b.bets_lost),
        "pending_bets": b.pending_bets,
        "squares_net": float(b.squares_net),
        "bets_net": float(b.bets_net),
        "total_net": float(b.total_net),
    }


def _row_to_dict(row: SettlementRow) -> Dict:
    return {
        "initials": row.initials,
        "squares_cost": float(row.squares_cost),
        "squares_won": float(row.squares_won),
        "bets_wagered": float(row.bets_wagered),
        "bets_won": float(row.bets_won),
        "bets_lost": float(row.bets_lost),
        "pending_bets": row.pending_bets,
        "pending_wagered": float(row.pending_wagered),
        "squares_net": float(row.squares_net),
        "bets_net": float(row.bets_net),
        "total_net": float(row.total_net),
        "standing": row.standing,
        "settled": row.settled,
        "settled_amount": float(row.settled_amount) if row.settled_amount is not None else None,
        "settled_at": format_utc(row.settled_at),
        "changed_since_settled": row.changed_since_settled,
        "games": [_breakdown_to_dict(g) for g in row.games],
    }


def report_to_dict(report: SettlementReport) -> Dict:
    summary = report.summary
    return {
        "rows": [_row_to_dict(r) for r in report.rows],
        "collect_from": [r.initials for r in report.collect_from],
        "pay_out_to": [r.initials for r in report.pay_out_to],
        "even": [r.initials for r in report.even],
        "has_pending_caveat": report.has_pending_caveat,
        "summary": {
            "to_collect": float(summary.to_collect),
            "to_pay_out": float(summary.to_pay_out),
            "house_balance": float(summary.house_balance),
            "outstanding_to_collect": float(summary.outstanding_to_collect),
            "outstanding_to_pay_out": float(summary.outstanding_to_pay_out),
            "players": summary.players,
            "settled_players": summary.settled_players,
        },
    }
