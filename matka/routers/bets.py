from decimal import Decimal

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from matka.constants import FAMILY_MAIN, FAMILY_STARLINE
from matka.core.auth import get_current_user, require_admin
from matka.db.session import get_session
from matka.models.user import User
from matka.schemas.bets import (
    BetPlaceIn, StarlineBetPlaceIn, BetPlaceOut, BetOut, BetsResp,
    BetCancelOut, BetAmendIn, BetAmendOut,
)
from matka.services.bet_service import (
    place_bet, place_starline_bet, cancel_bet, amend_pending_bet, list_user_bets,
)

router = APIRouter(prefix="/api/bets", tags=["bets"])
starline_router = APIRouter(prefix="/api/starline/bets", tags=["starline"])


def get_client_ip(req: Request) -> str:
    xff = req.headers.get("X-Forwarded-For") or req.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    return req.client.host if req.client else ""


@router.post("", response_model=BetPlaceOut, status_code=201)
async def place(
        payload: BetPlaceIn,
        session: AsyncSession = Depends(get_session),
        current_user: User = Depends(get_current_user),
):
    bet, balance = await place_bet(
        session, current_user.id, payload.game_id, payload.bet_type, payload.game_date,
        payload.bet_number, Decimal(str(payload.bet_amount)), payload.session,
    )
    return BetPlaceOut(bet=BetOut.model_validate(bet), balance=float(balance))


@router.get("/me", response_model=BetsResp)
async def my_bets(
        limit: int = 50,
        session: AsyncSession = Depends(get_session),
        current_user: User = Depends(get_current_user),
):
    rows = await list_user_bets(session, FAMILY_MAIN, current_user.id, limit)
    return {"bets": [BetOut.model_validate(b) for b in rows]}


@router.patch("/{bet_id}/cancel", response_model=BetCancelOut)
async def cancel(
        bet_id: int,
        session: AsyncSession = Depends(get_session),
        current_user: User = Depends(get_current_user),
):
    bid, refund, balance = await cancel_bet(session, FAMILY_MAIN, current_user.id, bet_id)
    return BetCancelOut(bet_id=bid, refund_amount=float(refund), balance=float(balance))


@router.put("/amend", response_model=BetAmendOut)
async def amend(
        payload: BetAmendIn,
        session: AsyncSession = Depends(get_session),
        admin: User = Depends(require_admin),
):
    """Change the number of a still-pending bet; the change is logged in bet_modification."""
    return await amend_pending_bet(
        session, payload.family, payload.bet_id, payload.new_bet_number, admin.id, payload.reason,
    )


@starline_router.post("", response_model=BetPlaceOut, status_code=201)
async def place_starline(
        payload: StarlineBetPlaceIn,
        request: Request,
        session: AsyncSession = Depends(get_session),
        current_user: User = Depends(get_current_user),
):
    bet, balance = await place_starline_bet(
        session, current_user.id, payload.game_id, payload.bet_type, payload.bet_number,
        Decimal(str(payload.bet_amount)), ip=get_client_ip(request),
    )
    return BetPlaceOut(bet=BetOut.model_validate(bet), balance=float(balance))


@starline_router.get("/me", response_model=BetsResp)
async def my_starline_bets(
        limit: int = 50,
        session: AsyncSession = Depends(get_session),
        current_user: User = Depends(get_current_user),
):
    rows = await list_user_bets(session, FAMILY_STARLINE, current_user.id, limit)
    return {"bets": [BetOut.model_validate(b) for b in rows]}


@starline_router.patch("/{bet_id}/cancel", response_model=BetCancelOut)
async def cancel_starline(
        bet_id: int,
        session: AsyncSession = Depends(get_session),
        current_user: User = Depends(get_current_user),
):
    bid, refund, balance = await cancel_bet(session, FAMILY_STARLINE, current_user.id, bet_id)
    return BetCancelOut(bet_id=bid, refund_amount=float(refund), balance=float(balance))
