"""Win/lose rules per bet type, independent of storage."""
from matka.services.resolvers import (
    Draw, MainBetType, SessionDraws, StarlineBetType, resolve_main, resolve_starline,
)

OPEN = Draw(panna="147", digit=2)
CLOSE = Draw(panna="360", digit=9)
OPEN_ONLY = SessionDraws(open=OPEN)
BOTH = SessionDraws(open=OPEN, close=CLOSE)


class TestSessionBoundTypes:
    """single and panna bets need only their own session."""

    def test_single_open_wins_on_open_digit(self):
        out = resolve_main(MainBetType.SINGLE, "2", "open", OPEN_ONLY)
        assert out.won is True
        assert out.result == "147-2"

    def test_single_numeric_comparison(self):
        assert resolve_main(MainBetType.SINGLE, " 2", "open", OPEN_ONLY).won is True

    def test_single_close_waits_for_close(self):
        assert resolve_main(MainBetType.SINGLE, "9", "close", OPEN_ONLY) is None
        assert resolve_main(MainBetType.SINGLE, "9", "close", BOTH).won is True

    def test_panna_exact_string_match(self):
        assert resolve_main(MainBetType.SINGLE_PANNA, "147", "open", OPEN_ONLY).won is True
        assert resolve_main(MainBetType.SINGLE_PANNA, "174", "open", OPEN_ONLY).won is False

    def test_missing_session_is_unresolvable(self):
        assert resolve_main(MainBetType.SINGLE, "2", None, BOTH) is None


class TestCrossSessionTypes:
    """jodi and sangam bets wait for both sessions."""

    def test_jodi_pending_after_open_only(self):
        assert resolve_main(MainBetType.JODI, "29", None, OPEN_ONLY) is None

    def test_jodi(self):
        out = resolve_main(MainBetType.JODI, "29", None, BOTH)
        assert out.won is True
        assert out.result == "147-2-360-9"
        assert resolve_main(MainBetType.JODI, "92", None, BOTH).won is False

    def test_jodi_leading_zero(self):
        draws = SessionDraws(open=Draw("550", 0), close=Draw("113", 5))
        assert resolve_main(MainBetType.JODI, "05", None, draws).won is True

    def test_full_sangam(self):
        assert resolve_main(MainBetType.FULL_SANGAM, "147|360", None, BOTH).won is True
        assert resolve_main(MainBetType.FULL_SANGAM, "147|361", None, BOTH).won is False
        assert resolve_main(MainBetType.FULL_SANGAM, "147|360", None, BOTH).result == "147-2/360-9"

    def test_half_sangam_sides(self):
        assert resolve_main(MainBetType.HALF_SANGAM, "openDigitClosePanna|2|360", None, BOTH).won is True
        assert resolve_main(MainBetType.HALF_SANGAM, "closeDigitOpenPanna|9|147", None, BOTH).won is True
        # digit and panna taken from the wrong sides
        assert resolve_main(MainBetType.HALF_SANGAM, "openDigitClosePanna|9|147", None, BOTH).won is False

    def test_malformed_sangam_loses(self):
        assert resolve_main(MainBetType.HALF_SANGAM, "2|360", None, BOTH).won is False
        assert resolve_main(MainBetType.FULL_SANGAM, "147", None, BOTH).won is False


class TestStarline:

    def test_single_digit_matches_last_digit(self):
        assert resolve_starline(StarlineBetType.SINGLE_DIGIT, "6", "246").won is True
        assert resolve_starline(StarlineBetType.SINGLE_DIGIT, "2", "246").won is False

    def test_pana_exact(self):
        assert resolve_starline(StarlineBetType.SINGLE_PANA, "246", "246").won is True
        assert resolve_starline(StarlineBetType.SINGLE_PANA, "245", "246").won is False
        assert resolve_starline(StarlineBetType.DOUBLE_PANA, "112", "112").result == "112"
