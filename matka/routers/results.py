from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from matka.core.auth import get_current_user, require_admin
from matka.db.session import get_session
from matka.models.user import User
from matka.schemas.results import (
    CheckWinnersOut, SessionDeclareIn, SessionDeclareOut, SessionResultOut, SessionResultsResp,
    StarlineDeclareIn, StarlineDeclareOut, StarlineResultOut, StarlineResultsResp,
)
from matka.services import result_cache
from matka.services.result_service import (
    declare_session_result, declare_starline_result, starline_summary,
    list_session_results, list_starline_results, get_starline_result,
    check_session_winners, check_starline_winners,
)

router = APIRouter(prefix="/api/results", tags=["results"])

Family = Literal["main", "starline"]


@router.post("/main/declare", response_model=SessionDeclareOut)
async def declare_main(payload: SessionDeclareIn, admin: User = Depends(require_admin)):
    """Declare an open/close session result; settles whatever that makes settleable."""
    row, summary = await declare_session_result(
        payload.game_id, payload.game_date, payload.session, payload.panna, payload.digit, admin.id,
    )
    return SessionDeclareOut(result=SessionResultOut.model_validate(row), settlement=summary.as_dict())


@router.get("/main/check-winners", response_model=CheckWinnersOut)
async def check_main_winners(
        game_id: int,
        game_date: date = Query(..., alias="date"),
        session_name: Literal["open", "close"] = Query(..., alias="session"),
        panna: str = Query(..., pattern=r"^\d{3}$"),
        digit: Optional[int] = Query(None, ge=0, le=9),
        session: AsyncSession = Depends(get_session),
        _: User = Depends(require_admin),
):
    """Which pending bets a candidate session result would pay; nothing is written."""
    return await check_session_winners(session, game_id, game_date, session_name, panna, digit)


@router.get("/main", response_model=SessionResultsResp)
async def main_results(
        game_id: Optional[int] = None,
        game_date: Optional[date] = Query(None, alias="date"),
        session: AsyncSession = Depends(get_session),
        _: User = Depends(get_current_user),
):
    rows = await list_session_results(session, game_id, game_date)
    return {"results": [SessionResultOut.model_validate(r) for r in rows]}


@router.post("/starline", response_model=StarlineDeclareOut, status_code=201)
async def declare_starline(payload: StarlineDeclareIn, admin: User = Depends(require_admin)):
    row, summary = await declare_starline_result(
        payload.game_id, payload.winning_number, admin.id, payload.game_date,
    )
    return StarlineDeclareOut(
        result=StarlineResultOut.model_validate(row),
        summary=starline_summary(row),
        settlement=summary.as_dict(),
    )


@router.get("/starline/check-winners", response_model=CheckWinnersOut)
async def check_starline(
        game_id: int,
        winning_number: str = Query(..., pattern=r"^\d{3}$"),
        game_date: date = Query(..., alias="date"),
        session: AsyncSession = Depends(get_session),
        _: User = Depends(require_admin),
):
    return await check_starline_winners(session, game_id, game_date, winning_number)


@router.get("/starline", response_model=StarlineResultsResp)
async def starline_results(
        game_id: Optional[int] = None,
        game_date: Optional[date] = Query(None, alias="date"),
        session: AsyncSession = Depends(get_session),
):
    rows = await list_starline_results(session, game_id, game_date)
    return {"results": [StarlineResultOut.model_validate(r) for r in rows]}


# cache-backed reads; registered before /starline/{result_id} so "last" is not taken for an id
@router.get("/{family}/last")
async def last_result(family: Family, game_id: int):
    return await result_cache.last_result(family, game_id)


@router.get("/{family}/history")
async def result_history(family: Family, game_id: int, limit: int = Query(30, ge=1, le=200)):
    return {"game_id": game_id, "list": await result_cache.history(family, game_id, limit)}


@router.get("/starline/{result_id}", response_model=StarlineResultOut)
async def starline_result(result_id: int, session: AsyncSession = Depends(get_session)):
    return StarlineResultOut.model_validate(await get_starline_result(session, result_id))
