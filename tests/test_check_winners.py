"""Check-winners previews: evaluate a candidate result without changing any state."""
from decimal import Decimal

import pytest
from sqlalchemy import delete, func, select

from conftest import BEFORE_OPEN, GAME_DATE, balance_of
from matka.core.errors import GameNotFound
from matka.core.security import create_access_token
from matka.db.session import AsyncSessionLocal
from matka.models.bet import Bet, StarlineBet
from matka.models.rate import GameRate
from matka.models.result import SessionResult, StarlineResult
from matka.models.wallet import WalletLedger
from matka.services.bet_service import place_bet, place_starline_bet
from matka.services.resolvers import MainBetType, StarlineBetType
from matka.services.result_service import (
    check_session_winners, check_starline_winners, declare_session_result,
)


async def count_rows(model, *where) -> int:
    async with AsyncSessionLocal() as s:
        return await s.scalar(select(func.count()).select_from(model).where(*where))


class TestSessionCheckWinners:

    @pytest.fixture
    async def bets(self, player_id, main_game, main_rates):
        placed = {}
        for name, bet_type, number, session in [
            ("open_hit", MainBetType.SINGLE, "2", "open"),
            ("open_miss", MainBetType.SINGLE, "5", "open"),
            ("panna_hit", MainBetType.SINGLE_PANNA, "147", "open"),
            ("jodi", MainBetType.JODI, "29", None),
            ("close_hit", MainBetType.SINGLE, "9", "close"),
        ]:
            async with AsyncSessionLocal() as s:
                bet, _ = await place_bet(
                    s, player_id, main_game, bet_type, GAME_DATE, number, Decimal("10"), session, now=BEFORE_OPEN,
                )
                placed[name] = bet.id
        return placed

    async def test_open_candidate_reports_without_settling(self, session, bets, player_id, main_game):
        balance = await balance_of(player_id)

        report = await check_session_winners(session, main_game, GAME_DATE, "open", "147")

        assert {w["bet_id"] for w in report["winners"]} == {bets["open_hit"], bets["panna_hit"]}
        assert report["stats"] == {
            "totalWinners": 2,
            "totalWinAmount": 1595.0,
            "totalBetAmount": 30.0,
            "pendingBets": 3,
            "profitLoss": -1565.0,
        }
        assert report["winners"][0]["result"] == "147-2"

        assert await balance_of(player_id) == balance
        assert await count_rows(Bet, Bet.status != "pending") == 0
        assert await count_rows(SessionResult) == 0
        assert await count_rows(WalletLedger, WalletLedger.biz_type == 30) == 0

    async def test_close_candidate_combines_with_declared_open(self, session, bets, admin_id, main_game):
        await declare_session_result(main_game, GAME_DATE, "open", "147", None, admin_id)

        report = await check_session_winners(session, main_game, GAME_DATE, "close", "360")

        by_id = {w["bet_id"]: w for w in report["winners"]}
        assert set(by_id) == {bets["jodi"], bets["close_hit"]}
        assert by_id[bets["jodi"]]["win_amount"] == 950.0
        assert by_id[bets["jodi"]]["result"] == "147-2-360-9"
        assert report["stats"]["totalWinAmount"] == 1045.0
        assert await count_rows(Bet, Bet.id == bets["jodi"], Bet.status == "pending") == 1

    async def test_supplied_digit(self, session, bets, main_game):
        report = await check_session_winners(session, main_game, GAME_DATE, "open", "147", digit=5)
        assert bets["open_miss"] in {w["bet_id"] for w in report["winners"]}

    async def test_unknown_game(self, session):
        with pytest.raises(GameNotFound):
            await check_session_winners(session, 9999, GAME_DATE, "open", "147")


class TestStarlineCheckWinners:

    @pytest.fixture
    async def bets(self, player_id, starline_game, starline_rates):
        placed = {}
        for name, bet_type, number in [
            ("digit", StarlineBetType.SINGLE_DIGIT, "6"),
            ("exact", StarlineBetType.SINGLE_PANA, "246"),
            ("miss", StarlineBetType.SINGLE_PANA, "245"),
        ]:
            async with AsyncSessionLocal() as s:
                bet, _ = await place_starline_bet(
                    s, player_id, starline_game, bet_type, number, Decimal("10"), now=BEFORE_OPEN,
                )
                placed[name] = bet.id
        return placed

    async def test_candidate_reports_without_declaring(self, session, bets, player_id, starline_game):
        balance = await balance_of(player_id)

        report = await check_starline_winners(session, starline_game, GAME_DATE, "246")

        assert [w["bet_id"] for w in report["winners"]] == [bets["digit"], bets["exact"]]
        assert report["stats"]["totalWinAmount"] == 1700.0
        assert report["stats"]["totalBetAmount"] == 30.0
        assert report["stats"]["pendingBets"] == 3

        assert await balance_of(player_id) == balance
        assert await count_rows(StarlineResult) == 0
        assert await count_rows(StarlineBet, StarlineBet.status == "pending") == 3

    async def test_missing_rate_listed_without_amount(self, session, bets, starline_game):
        await session.execute(delete(GameRate).where(GameRate.rate_key == "singleDigit", GameRate.family == "starline"))
        await session.commit()

        report = await check_starline_winners(session, starline_game, GAME_DATE, "246")

        by_id = {w["bet_id"]: w for w in report["winners"]}
        assert by_id[bets["digit"]]["win_amount"] is None
        assert report["stats"]["totalWinAmount"] == 1600.0


class TestCheckWinnersApi:

    async def test_admin_only(self, client, player_id, main_game):
        resp = await client.get(
            f"/api/results/main/check-winners?game_id={main_game}&date={GAME_DATE}&session=open&panna=147",
            headers={"Authorization": f"Bearer {create_access_token(player_id)}"},
        )
        assert resp.status_code == 403

    async def test_starline_route(self, client, admin_id, player_id, starline_game, starline_rates):
        async with AsyncSessionLocal() as s:
            await place_starline_bet(
                s, player_id, starline_game, StarlineBetType.SINGLE_PANA, "246", Decimal("10"), now=BEFORE_OPEN,
            )

        resp = await client.get(
            f"/api/results/starline/check-winners?game_id={starline_game}&date={GAME_DATE}&winning_number=246",
            headers={"Authorization": f"Bearer {create_access_token(admin_id)}"},
        )

        assert resp.status_code == 200
        assert resp.json()["stats"]["totalWinners"] == 1
        assert resp.json()["winners"][0]["win_amount"] == 1600.0

    async def test_bad_panna(self, client, admin_id, main_game):
        resp = await client.get(
            f"/api/results/main/check-winners?game_id={main_game}&date={GAME_DATE}&session=open&panna=14",
            headers={"Authorization": f"Bearer {create_access_token(admin_id)}"},
        )
        assert resp.status_code == 422
