"""Starline declaration: single draw, duplicate rejection, aggregates."""
from decimal import Decimal

import pytest
from fastapi import HTTPException

from conftest import BEFORE_OPEN, GAME_DATE, balance_of
from matka.core.errors import DuplicateResult, GameNotFound, ResultNotFound
from matka.db.session import AsyncSessionLocal
from matka.models.bet import StarlineBet
from matka.services.bet_service import place_starline_bet
from matka.services.resolvers import StarlineBetType
from matka.services.result_service import (
    declare_starline_result, get_starline_result, starline_summary,
)


async def place(user_id, game_id, bet_type, number, amount="10"):
    async with AsyncSessionLocal() as s:
        bet, _ = await place_starline_bet(s, user_id, game_id, bet_type, number, Decimal(amount), now=BEFORE_OPEN)
        return bet.id


async def load_bet(bet_id) -> StarlineBet:
    async with AsyncSessionLocal() as s:
        return await s.get(StarlineBet, bet_id)


@pytest.fixture
async def scope(player_id, admin_id, starline_game, starline_rates):
    return {"user": player_id, "admin": admin_id, "game": starline_game}


class TestStarlineDeclaration:

    async def test_bets_settle_against_winning_number(self, scope):
        u, g = scope["user"], scope["game"]
        digit = await place(u, g, StarlineBetType.SINGLE_DIGIT, "6")
        exact = await place(u, g, StarlineBetType.SINGLE_PANA, "246")
        miss = await place(u, g, StarlineBetType.SINGLE_PANA, "245")
        double = await place(u, g, StarlineBetType.DOUBLE_PANA, "112")

        row, summary = await declare_starline_result(g, "246", scope["admin"], GAME_DATE)

        assert summary.won == 2 and summary.lost == 2
        assert (await load_bet(digit)).win_amount == Decimal("100.00")
        assert (await load_bet(exact)).win_amount == Decimal("1600.00")
        assert (await load_bet(exact)).result == "246"
        assert (await load_bet(miss)).status == "lost"
        assert (await load_bet(double)).status == "lost"
        assert await balance_of(u) == Decimal("2660.00")

        assert row.status == "completed"
        assert row.digit == 2
        assert row.total_bets == 4
        assert row.winning_bets == 2
        assert row.total_bet_amount == Decimal("40.00")
        assert row.total_payout == Decimal("1700.00")
        assert row.bet_type_breakdown["singlePana"] == {
            "totalBets": 2, "winningBets": 1, "totalBetAmount": 20.0, "totalPayout": 1600.0,
        }
        assert row.bet_type_breakdown["triplePana"]["totalBets"] == 0

    async def test_summary_figures(self, scope):
        await place(scope["user"], scope["game"], StarlineBetType.SINGLE_DIGIT, "6")
        await place(scope["user"], scope["game"], StarlineBetType.SINGLE_DIGIT, "5")
        row, _ = await declare_starline_result(scope["game"], "246", scope["admin"], GAME_DATE)

        s = starline_summary(row)
        assert s["total_bets_processed"] == 2
        assert s["profit_loss"] == -80.0
        assert s["win_percentage"] == 50.0

    async def test_no_bets_still_completes(self, scope):
        row, summary = await declare_starline_result(scope["game"], "123", scope["admin"], GAME_DATE)
        assert summary.processed == 0
        assert row.status == "completed"
        assert starline_summary(row)["win_percentage"] == 0.0

    async def test_duplicate_declaration_rejected(self, scope):
        bet_id = await place(scope["user"], scope["game"], StarlineBetType.SINGLE_DIGIT, "6")
        await declare_starline_result(scope["game"], "246", scope["admin"], GAME_DATE)
        balance = await balance_of(scope["user"])

        with pytest.raises(DuplicateResult):
            await declare_starline_result(scope["game"], "999", scope["admin"], GAME_DATE)

        assert (await load_bet(bet_id)).status == "won"
        assert await balance_of(scope["user"]) == balance

    async def test_unknown_game(self, scope):
        with pytest.raises(GameNotFound):
            await declare_starline_result(9999, "246", scope["admin"], GAME_DATE)

    async def test_get_missing_result(self, session):
        with pytest.raises(ResultNotFound):
            await get_starline_result(session, 12345)


class TestStarlinePlacement:

    async def test_duplicate_pending_bet_rejected(self, scope):
        await place(scope["user"], scope["game"], StarlineBetType.SINGLE_DIGIT, "6")
        with pytest.raises(HTTPException) as e:
            await place(scope["user"], scope["game"], StarlineBetType.SINGLE_DIGIT, "6")
        assert e.value.status_code == 400
        assert await balance_of(scope["user"]) == Decimal("990.00")

    async def test_potential_win_is_stake_times_max(self, scope):
        bet_id = await place(scope["user"], scope["game"], StarlineBetType.TRIPLE_PANA, "555", amount="2")
        assert (await load_bet(bet_id)).potential_win == Decimal("2000.00")
