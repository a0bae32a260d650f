"""
Account settlement API routes.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.services.settlement_service import SettlementService, marker_to_dict, report_to_dict

router = APIRouter(prefix="/settlement", tags=["settlement"])


class MarkSettledRequest(BaseModel):
    amount: float = Field(..., description="Net balance acknowledged (positive: paid out, negative: collected)")
    note: Optional[str] = None


@router.get("")
async def get_settlement(db: Session = Depends(get_db)):
    """
    Settle-up report across every game.

    Rows are sorted from the biggest debtor to the biggest creditor.
    has_pending_caveat is set while unsettled players still have pending
    bets, whose outcome is not reflected in the amounts yet.
    """
    return report_to_dict(SettlementService(db).build_report())


@router.put("/{initials}")
async def mark_settled(initials: str, request: MarkSettledRequest, db: Session = Depends(get_db)):
    marker = SettlementService(db).mark_settled(initials, request.amount, request.note)
    return marker_to_dict(marker)


@router.delete("/{initials}")
async def unmark_settled(initials: str, db: Session = Depends(get_db)):
    SettlementService(db).unmark_settled(initials)
    return {"initials": initials.strip(), "settled": False}
