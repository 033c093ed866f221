
import datetime as dt
import logging
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from matka.constants import (
    BET_PENDING, BET_CANCELLED, BIZ_CANCEL_REFUND, FAMILY_MAIN, FAMILY_STARLINE, SESSION_CLOSE,
)
from matka.core.config import settings
from matka.core.errors import (
    GameNotFound, BettingClosed, MissingRate, BetNotCancellable, CancelWindowExpired,
)
from matka.core.timeutil import now_naive, parse_hhmm, day_window
from matka.models.bet import Bet, StarlineBet, BetModification
from matka.models.game import Game, StarlineGame
from matka.models.user import User
from matka.services.bet_numbers import check_main_number, check_starline_number
from matka.services.rates import load_rates, payout_from_rate, payout_fixed, q2
from matka.services.resolvers import (
    MainBetType, StarlineBetType, SESSION_BOUND, MAIN_RATE_KEY, STARLINE_RATE_KEY,
)
from matka.services.wallet import credit, debit_for_bet, bet_ledger_entry

logger = logging.getLogger(__name__)

BET_MODELS = {FAMILY_MAIN: Bet, FAMILY_STARLINE: StarlineBet}


# ------------------------------
# betting windows
# ------------------------------
def main_betting_closes_at(game: Game, game_date: dt.date, session: Optional[str]) -> dt.datetime:
    # jodi / sangam bets need both draws, so they close with the open session
    hhmm = game.close_time if session == SESSION_CLOSE else game.open_time
    return dt.datetime.combine(game_date, parse_hhmm(hhmm))


def starline_betting_closes_at(game: StarlineGame, game_date: dt.date) -> dt.datetime:
    return dt.datetime.combine(game_date, parse_hhmm(game.open_time))


async def _betting_closes_at(session: AsyncSession, family: str, bet) -> Optional[dt.datetime]:
    if family == FAMILY_MAIN:
        game = await session.get(Game, bet.game_id)
        return main_betting_closes_at(game, bet.game_date, bet.session) if game and game.is_active else None
    game = await session.get(StarlineGame, bet.game_id)
    return starline_betting_closes_at(game, bet.game_date) if game and game.is_active else None


async def _balance(session: AsyncSession, user_id: int) -> Decimal:
    return q2(await session.scalar(select(User.balance).where(User.id == user_id)) or 0)


# ------------------------------
# placement
# ------------------------------
async def place_bet(
    session: AsyncSession,
    user_id: int,
    game_id: int,
    bet_type: MainBetType,
    game_date: dt.date,
    bet_number: str,
    bet_amount: Decimal,
    bet_session: Optional[str] = None,
    now: Optional[dt.datetime] = None,
) -> tuple[Bet, Decimal]:
    now = now or now_naive()
    try:
        game = await session.get(Game, game_id)
        if game is None:
            raise GameNotFound(game_id)
        if not game.is_active:
            raise BettingClosed("Game is not active")

        bet_session = bet_session if bet_type in SESSION_BOUND else None
        if now >= main_betting_closes_at(game, game_date, bet_session):
            raise BettingClosed()

        rate_key = MAIN_RATE_KEY[bet_type]
        rate = (await load_rates(session, FAMILY_MAIN)).get(rate_key)
        if rate is None:
            raise MissingRate(rate_key)

        amount = await debit_for_bet(session, user_id, bet_amount)
        bet = Bet(
            user_id=user_id,
            game_id=game.id,
            game_name=game.name,
            bet_type=bet_type.value,
            session=bet_session,
            game_date=game_date,
            bet_number=check_main_number(bet_type, bet_number),
            bet_amount=amount,
            potential_win=q2(payout_from_rate(rate.min, rate.max, amount)),
            status=BET_PENDING,
            win_amount=Decimal("0.00"),
            bet_date=now,
        )
        session.add(bet)
        await session.flush()
        session.add(bet_ledger_entry(user_id, amount, Bet.__tablename__, bet.id))

        await session.commit()
    except Exception:
        await session.rollback(); raise

    logger.info("bet placed id=%s user=%s %s %s %.2f", bet.id, user_id, bet.bet_type, bet.bet_number, amount)
    return bet, await _balance(session, user_id)


async def place_starline_bet(
    session: AsyncSession,
    user_id: int,
    game_id: int,
    bet_type: StarlineBetType,
    bet_number: str,
    bet_amount: Decimal,
    ip: Optional[str] = None,
    now: Optional[dt.datetime] = None,
) -> tuple[StarlineBet, Decimal]:
    now = now or now_naive()
    try:
        game = await session.get(StarlineGame, game_id)
        if game is None:
            raise GameNotFound(game_id)
        if not game.is_active:
            raise BettingClosed("Game is not active")
        if now >= starline_betting_closes_at(game, now.date()):
            raise BettingClosed()

        rate_key = STARLINE_RATE_KEY[bet_type]
        rate = (await load_rates(session, FAMILY_STARLINE)).get(rate_key)
        if rate is None:
            raise MissingRate(rate_key)

        bet_number = check_starline_number(bet_type, bet_number)
        start, end = day_window(now.date())
        dup = await session.scalar(
            select(StarlineBet.id).where(
                StarlineBet.user_id == user_id,
                StarlineBet.game_id == game_id,
                StarlineBet.bet_type == bet_type.value,
                StarlineBet.bet_number == bet_number,
                StarlineBet.bet_date >= start,
                StarlineBet.bet_date < end,
                StarlineBet.status == BET_PENDING,
            )
        )
        if dup is not None:
            raise HTTPException(400, "You have already placed this bet for today")

        amount = await debit_for_bet(session, user_id, bet_amount)
        bet = StarlineBet(
            user_id=user_id,
            game_id=game.id,
            game_name=game.name,
            bet_type=bet_type.value,
            game_date=now.date(),
            bet_number=bet_number,
            bet_amount=amount,
            potential_win=q2(payout_fixed(rate.max, amount)),
            status=BET_PENDING,
            win_amount=Decimal("0.00"),
            bet_date=now,
            ip=ip,
        )
        session.add(bet)
        await session.flush()
        session.add(bet_ledger_entry(user_id, amount, StarlineBet.__tablename__, bet.id))

        await session.commit()
    except Exception:
        await session.rollback(); raise

    logger.info("starline bet placed id=%s user=%s %s %s %.2f", bet.id, user_id, bet.bet_type, bet.bet_number, amount)
    return bet, await _balance(session, user_id)


# ------------------------------
# owner cancellation
# ------------------------------
async def cancel_bet(
    session: AsyncSession,
    family: str,
    user_id: int,
    bet_id: int,
    now: Optional[dt.datetime] = None,
) -> tuple[int, Decimal, Decimal]:
    """
    pending -> cancelled and refund the stake, in one transaction.
    The status filter on the UPDATE makes this mutually exclusive with settlement.
    Returns (bet_id, refund, balance).
    """
    model = BET_MODELS[family]
    now = now or now_naive()
    try:
        bet = await session.scalar(
            select(model).where(model.id == bet_id, model.user_id == user_id, model.status == BET_PENDING)
        )
        if bet is None:
            raise BetNotCancellable()

        closes_at = await _betting_closes_at(session, family, bet)
        if closes_at is None or now >= closes_at:
            raise BettingClosed("Cannot cancel bet after betting time has closed")

        if (now - bet.bet_date).total_seconds() > settings.BET_CANCEL_WINDOW_SECONDS:
            raise CancelWindowExpired(settings.BET_CANCEL_WINDOW_SECONDS)

        rs = await session.execute(
            update(model)
            .where(model.id == bet.id, model.status == BET_PENDING)
            .values(status=BET_CANCELLED, win_amount=Decimal("0.00"), result_date=now)
            .execution_options(synchronize_session=False)
        )
        if rs.rowcount != 1:
            raise BetNotCancellable()

        refund = await credit(
            session, user_id, bet.bet_amount, BIZ_CANCEL_REFUND, model.__tablename__, bet.id,
            remark="bet cancelled",
        )
        await session.commit()
    except Exception:
        await session.rollback(); raise

    logger.info("%s bet cancelled id=%s user=%s refund=%.2f", family, bet_id, user_id, refund)
    return bet_id, refund, await _balance(session, user_id)


# ------------------------------
# admin amendment of a pending bet
# ------------------------------
async def amend_pending_bet(
    session: AsyncSession,
    family: str,
    bet_id: int,
    new_bet_number: str,
    admin_id: int,
    reason: Optional[str] = None,
) -> dict:
    model = BET_MODELS[family]
    try:
        bet = await session.get(model, bet_id)
        if bet is None:
            raise HTTPException(404, "Bet not found")
        if bet.status != BET_PENDING:
            raise HTTPException(400, "Only pending bets can be amended")

        try:
            if family == FAMILY_MAIN:
                new_bet_number = check_main_number(MainBetType(bet.bet_type), new_bet_number)
            else:
                new_bet_number = check_starline_number(StarlineBetType(bet.bet_type), new_bet_number)
        except ValueError as e:
            raise HTTPException(400, str(e)) from e

        original = bet.bet_number
        rs = await session.execute(
            update(model)
            .where(model.id == bet.id, model.status == BET_PENDING, model.bet_number == original)
            .values(bet_number=new_bet_number)
            .execution_options(synchronize_session=False)
        )
        if rs.rowcount != 1:
            raise HTTPException(409, "Bet changed while amending, retry")

        session.add(BetModification(
            family=family,
            bet_id=bet.id,
            modified_by=admin_id,
            action="bet_number_changed",
            original_bet_number=original,
            new_bet_number=new_bet_number,
            original_status=bet.status,
            original_win_amount=q2(bet.win_amount or 0),
            reason=reason or "Admin correction",
        ))
        await session.commit()
    except Exception:
        await session.rollback(); raise

    logger.info("admin %s changed %s bet %s number %s -> %s", admin_id, family, bet_id, original, new_bet_number)
    return {
        "bet_id": bet_id,
        "original_bet_number": original,
        "new_bet_number": new_bet_number,
        "status": BET_PENDING,
    }


async def list_user_bets(session: AsyncSession, family: str, user_id: int, limit: int = 50):
    model = BET_MODELS[family]
    rs = await session.execute(
        select(model).where(model.user_id == user_id).order_by(model.id.desc()).limit(limit)
    )
    return rs.scalars().all()
