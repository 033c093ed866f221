import datetime as dt
import logging
from functools import partial
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from matka.constants import (
    BET_PENDING, BET_WON, BET_LOST, FAMILY_MAIN, FAMILY_STARLINE, RESULT_PROCESSING, SESSION_OPEN,
)
from matka.core.errors import GameNotFound, DuplicateResult, ResultNotFound
from matka.core.timeutil import now_naive, now_local, day_window
from matka.db.session import AsyncSessionLocal
from matka.models.bet import Bet, StarlineBet
from matka.models.game import Game, StarlineGame
from matka.models.result import SessionResult, StarlineResult
from matka.services.digits import checksum_digit
from matka.services.rates import dec, load_rates, payout_fixed, payout_from_rate, q2
from matka.services.resolvers import (
    Draw, SessionDraws, MainBetType, StarlineBetType, SESSION_BOUND,
    MAIN_RATE_KEY, STARLINE_RATE_KEY, resolve_main, resolve_starline,
)
from matka.services.result_cache import push_result
from matka.tasks.dispatcher import dispatcher
from matka.tasks.settlement import SettlementSummary, settle_main_scope, finish_starline_result, load_session_draws

logger = logging.getLogger(__name__)


# ------------------------------
# main family: open / close sessions
# ------------------------------
async def declare_session_result(
    game_id: int,
    game_date: dt.date,
    session: str,
    panna: str,
    digit: Optional[int],
    declared_by: int,
) -> tuple[SessionResult, SettlementSummary]:
    """
    Write (or overwrite) one session's result, then settle the (game, date) scope.
    Runs as a single work item on the settlement worker.
    """
    job = partial(_declare_session_job, game_id, game_date, session, panna, digit, declared_by)
    return await dispatcher.submit(job, label=f"main:{game_id}:{game_date}:{session}")


async def _declare_session_job(game_id, game_date, session, panna, digit, declared_by):
    digit = digit if digit is not None else checksum_digit(panna)

    async with AsyncSessionLocal() as s:
        async with s.begin():
            game = await s.get(Game, game_id)
            if game is None:
                raise GameNotFound(game_id)

            row = await s.scalar(
                select(SessionResult).where(
                    SessionResult.game_id == game_id,
                    SessionResult.game_date == game_date,
                    SessionResult.session == session,
                )
            )
            if row is not None:
                # settled bets are not revisited; they keep the outcome of the previous value
                settled = await s.scalar(
                    select(func.count(Bet.id)).where(
                        Bet.game_id == game_id,
                        Bet.game_date == game_date,
                        Bet.status.in_([BET_WON, BET_LOST]),
                    )
                )
                logger.warning(
                    "%s %s %s redeclared %s-%s -> %s-%s; %s bets already settled",
                    game.name, game_date, session, row.panna, row.digit, panna, digit, settled,
                )
                row.panna, row.digit, row.declared_by = panna, digit, declared_by
            else:
                row = SessionResult(
                    game_id=game_id,
                    game_name=game.name,
                    game_date=game_date,
                    session=session,
                    panna=panna,
                    digit=digit,
                    declared_by=declared_by,
                )
                s.add(row)

    await push_result(FAMILY_MAIN, game_id, {
        "game_id": game_id,
        "game_name": row.game_name,
        "game_date": game_date.isoformat(),
        "session": session,
        "panna": panna,
        "digit": digit,
    })

    summary = await settle_main_scope(game_id, game_date)
    logger.info("%s %s %s declared %s-%s: %s", row.game_name, game_date, session, panna, digit, summary.as_dict())
    return row, summary


async def list_session_results(session: AsyncSession, game_id: Optional[int] = None, game_date: Optional[dt.date] = None):
    stmt = select(SessionResult)
    if game_id is not None:
        stmt = stmt.where(SessionResult.game_id == game_id)
    if game_date is not None:
        stmt = stmt.where(SessionResult.game_date == game_date)
    stmt = stmt.order_by(SessionResult.game_date.desc(), SessionResult.session.desc())
    return (await session.execute(stmt)).scalars().all()


# ------------------------------
# starline family: one draw per day
# ------------------------------
async def declare_starline_result(
    game_id: int,
    winning_number: str,
    declared_by: int,
    game_date: Optional[dt.date] = None,
) -> tuple[StarlineResult, SettlementSummary]:
    game_date = game_date or now_local().date()
    job = partial(_declare_starline_job, game_id, game_date, winning_number, declared_by)
    return await dispatcher.submit(job, label=f"starline:{game_id}:{game_date}")


async def _declare_starline_job(game_id, game_date, winning_number, declared_by):
    try:
        async with AsyncSessionLocal() as s:
            async with s.begin():
                game = await s.get(StarlineGame, game_id)
                if game is None:
                    raise GameNotFound(game_id)

                existing = await s.scalar(
                    select(StarlineResult.id).where(
                        StarlineResult.game_id == game_id,
                        StarlineResult.game_date == game_date,
                    )
                )
                if existing is not None:
                    raise DuplicateResult()

                now = now_naive()
                row = StarlineResult(
                    game_id=game_id,
                    game_name=game.name,
                    game_date=game_date,
                    winning_number=winning_number,
                    digit=checksum_digit(winning_number),
                    declared_by=declared_by,
                    declared_at=now,
                    status=RESULT_PROCESSING,
                    processing_started=now,
                )
                s.add(row)
    except IntegrityError as e:
        raise DuplicateResult() from e

    await push_result(FAMILY_STARLINE, game_id, {
        "game_id": game_id,
        "game_name": row.game_name,
        "game_date": game_date.isoformat(),
        "winning_number": winning_number,
        "digit": row.digit,
    })

    summary = await finish_starline_result(row.id)
    async with AsyncSessionLocal() as s:
        row = await s.get(StarlineResult, row.id)
    logger.info("%s %s declared %s: %s", row.game_name, game_date, winning_number, summary.as_dict())
    return row, summary


def starline_summary(result: StarlineResult) -> dict:
    total_bets = int(result.total_bets or 0)
    amount = float(result.total_bet_amount or 0)
    payout = float(result.total_payout or 0)
    winning = int(result.winning_bets or 0)
    return {
        "total_bets_processed": total_bets,
        "total_bet_amount": amount,
        "total_payout": payout,
        "winning_bets": winning,
        "profit_loss": round(amount - payout, 2),
        "win_percentage": round(winning / total_bets * 100, 2) if total_bets else 0.0,
    }


async def list_starline_results(session: AsyncSession, game_id: Optional[int] = None, game_date: Optional[dt.date] = None):
    stmt = select(StarlineResult)
    if game_id is not None:
        stmt = stmt.where(StarlineResult.game_id == game_id)
    if game_date is not None:
        stmt = stmt.where(StarlineResult.game_date == game_date)
    stmt = stmt.order_by(StarlineResult.game_date.desc(), StarlineResult.declared_at.desc())
    return (await session.execute(stmt)).scalars().all()


async def get_starline_result(session: AsyncSession, result_id: int) -> StarlineResult:
    row = await session.get(StarlineResult, result_id)
    if row is None:
        raise ResultNotFound()
    return row


# ------------------------------
# check winners: what a candidate result would pay, without writing anything
# ------------------------------
def _winner_row(bet, outcome, win) -> dict:
    return {
        "bet_id": bet.id,
        "user_id": bet.user_id,
        "bet_type": bet.bet_type,
        "bet_number": bet.bet_number,
        "session": getattr(bet, "session", None),
        "bet_amount": float(q2(bet.bet_amount)),
        "win_amount": float(q2(win)) if win is not None else None,
        "result": outcome.result,
    }


def _winners_report(winners: list, total_bet_amount: Decimal, pending_bets: int) -> dict:
    total_win = sum((Decimal(str(w["win_amount"])) for w in winners if w["win_amount"] is not None), Decimal("0"))
    return {
        "winners": winners,
        "stats": {
            "totalWinners": len(winners),
            "totalWinAmount": float(q2(total_win)),
            "totalBetAmount": float(q2(total_bet_amount)),
            "pendingBets": pending_bets,
            "profitLoss": float(q2(total_bet_amount - total_win)),
        },
    }


async def check_session_winners(
    session: AsyncSession,
    game_id: int,
    game_date: dt.date,
    bet_session: str,
    panna: str,
    digit: Optional[int] = None,
) -> dict:
    """
    Evaluate the scope's pending bets against a candidate panna for one session.
    The other session's declared draw, if any, is combined with it, so jodi and
    sangam bets show up once both sides are known. Nothing is persisted.
    Winners whose rate is not configured are listed with win_amount None.
    """
    if await session.get(Game, game_id) is None:
        raise GameNotFound(game_id)

    candidate = Draw(panna=panna, digit=digit if digit is not None else checksum_digit(panna))
    declared = await load_session_draws(session, game_id, game_date)
    if bet_session == SESSION_OPEN:
        draws = SessionDraws(open=candidate, close=declared.close)
    else:
        draws = SessionDraws(open=declared.open, close=candidate)
    rates = await load_rates(session, FAMILY_MAIN)

    rs = await session.execute(
        select(Bet)
        .where(Bet.game_id == game_id, Bet.game_date == game_date, Bet.status == BET_PENDING)
        .order_by(Bet.id.asc())
    )
    winners, staked, count = [], Decimal("0"), 0
    for bet in rs.scalars().all():
        try:
            bet_type = MainBetType(bet.bet_type)
        except ValueError:
            continue
        # only bets this candidate can decide
        if bet_type in SESSION_BOUND and bet.session != bet_session:
            continue
        outcome = resolve_main(bet_type, bet.bet_number, bet.session, draws)
        if outcome is None:
            continue
        count += 1
        staked += dec(bet.bet_amount)
        if outcome.won:
            rate = rates.get(MAIN_RATE_KEY[bet_type])
            win = payout_from_rate(rate.min, rate.max, bet.bet_amount) if rate else None
            winners.append(_winner_row(bet, outcome, win))
    return _winners_report(winners, staked, count)


async def check_starline_winners(
    session: AsyncSession,
    game_id: int,
    game_date: dt.date,
    winning_number: str,
) -> dict:
    """Evaluate the day's pending starline bets against a candidate winning number."""
    if await session.get(StarlineGame, game_id) is None:
        raise GameNotFound(game_id)

    rates = await load_rates(session, FAMILY_STARLINE)
    start, end = day_window(game_date)
    rs = await session.execute(
        select(StarlineBet)
        .where(
            StarlineBet.game_id == game_id,
            StarlineBet.bet_date >= start,
            StarlineBet.bet_date < end,
            StarlineBet.status == BET_PENDING,
        )
        .order_by(StarlineBet.id.asc())
    )
    winners, staked, count = [], Decimal("0"), 0
    for bet in rs.scalars().all():
        try:
            bet_type = StarlineBetType(bet.bet_type)
        except ValueError:
            continue
        count += 1
        staked += dec(bet.bet_amount)
        outcome = resolve_starline(bet_type, bet.bet_number, winning_number)
        if outcome.won:
            rate = rates.get(STARLINE_RATE_KEY[bet_type])
            win = payout_fixed(rate.max, bet.bet_amount) if rate else None
            winners.append(_winner_row(bet, outcome, win))
    return _winners_report(winners, staked, count)
