# matka/tasks/settlement.py
from __future__ import annotations
import datetime as dt
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from matka.constants import (
    BET_PENDING, BET_WON, BET_LOST, BIZ_PAYOUT,
    SESSION_OPEN, SESSION_CLOSE, FAMILY_MAIN, FAMILY_STARLINE, RESULT_COMPLETED,
)
from matka.core.config import settings
from matka.core.timeutil import day_window, now_naive
from matka.db.session import AsyncSessionLocal
from matka.models.bet import Bet, StarlineBet
from matka.models.result import SessionResult, StarlineResult
from matka.services.rates import Rate, load_rates, payout_from_rate, payout_fixed, q2
from matka.services.resolvers import (
    Draw, SessionDraws, Outcome,
    MainBetType, StarlineBetType,
    MAIN_RATE_KEY, STARLINE_RATE_KEY,
    resolve_main, resolve_starline,
)
from matka.services.wallet import credit

logger = logging.getLogger(__name__)

# per-bet outcomes that leave the bet pending
DEFERRED = "deferred"   # result or rate not available yet
SKIPPED = "skipped"     # unrecognised bet type


@dataclass
class SettlementSummary:
    won: int = 0
    lost: int = 0
    deferred: int = 0
    skipped: int = 0
    failed: int = 0
    total_payout: Decimal = field(default_factory=lambda: Decimal("0.00"))

    @property
    def processed(self) -> int:
        return self.won + self.lost

    def as_dict(self) -> dict:
        return {
            "processed": self.processed,
            "won": self.won,
            "lost": self.lost,
            "deferred": self.deferred,
            "skipped": self.skipped,
            "failed": self.failed,
            "total_payout": float(self.total_payout),
        }


@dataclass(frozen=True)
class BetSettlement:
    bet_id: int
    user_id: int
    status: str
    stake: Decimal
    win: Decimal


# ------------------------------
# shared: terminal transition + credit in the caller's transaction
# ------------------------------
async def _apply_outcome(s: AsyncSession, model, bet, outcome: Outcome, win: Decimal) -> Optional[BetSettlement]:
    status = BET_WON if outcome.won else BET_LOST
    amount = q2(win) if outcome.won else Decimal("0.00")

    # only a still-pending, unamended bet may transition; a cancel that got there first wins
    rs = await s.execute(
        update(model)
        .where(model.id == bet.id, model.status == BET_PENDING, model.bet_number == bet.bet_number)
        .values(status=status, win_amount=amount, result=outcome.result, result_date=now_naive())
        .execution_options(synchronize_session=False)
    )
    if rs.rowcount != 1:
        return None

    if outcome.won:
        await credit(
            s, bet.user_id, amount, BIZ_PAYOUT, model.__tablename__, bet.id,
            remark=f"{bet.game_name} {bet.bet_type} {bet.bet_number} won",
        )
    return BetSettlement(bet_id=bet.id, user_id=bet.user_id, status=status, stake=q2(bet.bet_amount), win=amount)


def _tally(summary: SettlementSummary, details) -> None:
    if details == DEFERRED:
        summary.deferred += 1
    elif details == SKIPPED:
        summary.skipped += 1
    elif isinstance(details, BetSettlement):
        if details.status == BET_WON:
            summary.won += 1
            summary.total_payout += details.win
        else:
            summary.lost += 1


def _log_settled(game_name: str, game_date: dt.date, details) -> None:
    if isinstance(details, BetSettlement):
        logger.info(
            "%s %s: user %s staked %.2f, %s %.2f (bet id=%s)",
            game_name, game_date.isoformat(), details.user_id, details.stake,
            details.status, details.win, details.bet_id,
        )


# ------------------------------
# main family
# ------------------------------
async def load_session_draws(session: AsyncSession, game_id: int, game_date: dt.date) -> SessionDraws:
    rs = await session.execute(
        select(SessionResult).where(SessionResult.game_id == game_id, SessionResult.game_date == game_date)
    )
    by_session = {row.session: Draw(panna=row.panna, digit=int(row.digit)) for row in rs.scalars().all()}
    return SessionDraws(open=by_session.get(SESSION_OPEN), close=by_session.get(SESSION_CLOSE))


async def _settle_one_bet(s: AsyncSession, bet_id: int, draws: SessionDraws, rates: Dict[str, Rate]):
    bet = await s.get(Bet, bet_id, with_for_update=True)
    if bet is None or bet.status != BET_PENDING:
        return None

    try:
        bet_type = MainBetType(bet.bet_type)
    except ValueError:
        logger.warning("bet %s has unknown bet type %r, left pending", bet.id, bet.bet_type)
        return SKIPPED

    outcome = resolve_main(bet_type, bet.bet_number, bet.session, draws)
    if outcome is None:
        return DEFERRED

    rate = rates.get(MAIN_RATE_KEY[bet_type])
    if rate is None:
        return DEFERRED

    win = payout_from_rate(rate.min, rate.max, bet.bet_amount) if outcome.won else Decimal("0")
    return await _apply_outcome(s, Bet, bet, outcome, win)


async def settle_main_scope(game_id: int, game_date: dt.date) -> SettlementSummary:
    """
    Resolve every pending bet of (game_id, game_date) that the declared sessions allow.
    One transaction per bet; a failing bet is logged and left pending, its siblings continue.
    """
    summary = SettlementSummary()
    async with AsyncSessionLocal() as session:
        draws = await load_session_draws(session, game_id, game_date)
        rates = await load_rates(session, FAMILY_MAIN)
    if draws.open is None and draws.close is None:
        return summary

    missing = {key for key in MAIN_RATE_KEY.values() if key not in rates}
    if missing:
        logger.warning("main rates missing %s; affected bets stay pending", sorted(missing))

    last_id = 0
    while True:
        async with AsyncSessionLocal() as session:
            rs = await session.execute(
                select(Bet.id, Bet.game_name)
                .where(
                    Bet.game_id == game_id,
                    Bet.game_date == game_date,
                    Bet.status == BET_PENDING,
                    Bet.id > last_id,
                )
                .order_by(Bet.id.asc())
                .limit(settings.SETTLE_BATCH_LIMIT)
            )
            rows = rs.all()
        if not rows:
            break
        last_id = rows[-1][0]

        for bet_id, game_name in rows:
            try:
                async with AsyncSessionLocal() as s:
                    async with s.begin():
                        details = await _settle_one_bet(s, bet_id, draws, rates)
            except Exception as e:
                summary.failed += 1
                logger.exception("settling bet failed bet_id=%s: %s", bet_id, e)
                continue
            _tally(summary, details)
            _log_settled(game_name, game_date, details)

    return summary


# ------------------------------
# starline family
# ------------------------------
async def _settle_one_starline_bet(s: AsyncSession, bet_id: int, winning_number: str, rates: Dict[str, Rate]):
    bet = await s.get(StarlineBet, bet_id, with_for_update=True)
    if bet is None or bet.status != BET_PENDING:
        return None

    try:
        bet_type = StarlineBetType(bet.bet_type)
    except ValueError:
        logger.warning("starline bet %s has unknown bet type %r, left pending", bet.id, bet.bet_type)
        return SKIPPED

    rate = rates.get(STARLINE_RATE_KEY[bet_type])
    if rate is None:
        return DEFERRED

    outcome = resolve_starline(bet_type, bet.bet_number, winning_number)
    win = payout_fixed(rate.max, bet.bet_amount) if outcome.won else Decimal("0")
    return await _apply_outcome(s, StarlineBet, bet, outcome, win)


async def settle_starline_scope(game_id: int, game_date: dt.date, winning_number: str) -> SettlementSummary:
    summary = SettlementSummary()
    async with AsyncSessionLocal() as session:
        rates = await load_rates(session, FAMILY_STARLINE)

    missing = {key for key in STARLINE_RATE_KEY.values() if key not in rates}
    if missing:
        logger.warning("starline rates missing %s; affected bets stay pending", sorted(missing))

    start, end = day_window(game_date)
    last_id = 0
    while True:
        async with AsyncSessionLocal() as session:
            rs = await session.execute(
                select(StarlineBet.id, StarlineBet.game_name)
                .where(
                    StarlineBet.game_id == game_id,
                    StarlineBet.bet_date >= start,
                    StarlineBet.bet_date < end,
                    StarlineBet.status == BET_PENDING,
                    StarlineBet.id > last_id,
                )
                .order_by(StarlineBet.id.asc())
                .limit(settings.SETTLE_BATCH_LIMIT)
            )
            rows = rs.all()
        if not rows:
            break
        last_id = rows[-1][0]

        for bet_id, game_name in rows:
            try:
                async with AsyncSessionLocal() as s:
                    async with s.begin():
                        details = await _settle_one_starline_bet(s, bet_id, winning_number, rates)
            except Exception as e:
                summary.failed += 1
                logger.exception("settling starline bet failed bet_id=%s: %s", bet_id, e)
                continue
            _tally(summary, details)
            _log_settled(game_name, game_date, details)

    return summary


def _empty_row() -> dict:
    return {"totalBets": 0, "winningBets": 0, "totalBetAmount": 0.0, "totalPayout": 0.0}


def _empty_breakdown() -> dict:
    return {t.value: _empty_row() for t in StarlineBetType}


async def refresh_starline_stats(session: AsyncSession, result: StarlineResult) -> StarlineResult:
    """Recompute the result's aggregates from the settled bets of its day."""
    start, end = day_window(result.game_date)
    rs = await session.execute(
        select(
            StarlineBet.bet_type,
            StarlineBet.status,
            func.count(StarlineBet.id),
            func.coalesce(func.sum(StarlineBet.bet_amount), 0),
            func.coalesce(func.sum(StarlineBet.win_amount), 0),
        )
        .where(
            StarlineBet.game_id == result.game_id,
            StarlineBet.bet_date >= start,
            StarlineBet.bet_date < end,
            StarlineBet.status.in_([BET_WON, BET_LOST]),
        )
        .group_by(StarlineBet.bet_type, StarlineBet.status)
    )

    breakdown = _empty_breakdown()
    total_bets, winning_bets = 0, 0
    total_amount, total_payout = Decimal("0"), Decimal("0")
    for bet_type, status, count, amount, payout in rs.all():
        amount, payout = q2(amount), q2(payout)
        total_bets += count
        total_amount += amount
        total_payout += payout
        if status == BET_WON:
            winning_bets += count
        row = breakdown.setdefault(bet_type, _empty_row())
        row["totalBets"] += count
        row["totalBetAmount"] = float(q2(Decimal(str(row["totalBetAmount"])) + amount))
        row["totalPayout"] = float(q2(Decimal(str(row["totalPayout"])) + payout))
        if status == BET_WON:
            row["winningBets"] += count

    result.total_bets = total_bets
    result.winning_bets = winning_bets
    result.total_bet_amount = q2(total_amount)
    result.total_payout = q2(total_payout)
    result.bet_type_breakdown = breakdown
    return result


async def finish_starline_result(result_id: int) -> SettlementSummary:
    """Settle the scope of a declared starline result and store its aggregates."""
    async with AsyncSessionLocal() as session:
        result = await session.get(StarlineResult, result_id)
        game_id, game_date, winning_number = result.game_id, result.game_date, result.winning_number

    summary = await settle_starline_scope(game_id, game_date, winning_number)

    async with AsyncSessionLocal() as session:
        async with session.begin():
            result = await session.get(StarlineResult, result_id, with_for_update=True)
            await refresh_starline_stats(session, result)
            result.status = RESULT_COMPLETED
            result.processing_completed = now_naive()
    return summary
