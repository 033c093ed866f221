"""
Win/lose rules per bet type.

Each family has a closed set of bet types (an Enum) and exactly one resolver
per member. A resolver returns ``None`` while the result information it needs
has not been declared yet; the bet then stays pending.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from matka.constants import SESSION_OPEN, SESSION_CLOSE
from matka.services.digits import jodi


class MainBetType(str, Enum):
    SINGLE = "single"
    JODI = "jodi"
    SINGLE_PANNA = "singlePanna"
    DOUBLE_PANNA = "doublePanna"
    TRIPLE_PANNA = "triplePanna"
    HALF_SANGAM = "halfSangam"
    FULL_SANGAM = "fullSangam"


class StarlineBetType(str, Enum):
    SINGLE_DIGIT = "singleDigit"
    SINGLE_PANA = "singlePana"
    DOUBLE_PANA = "doublePana"
    TRIPLE_PANA = "triplePana"


# bet types that are bound to one session
SESSION_BOUND = frozenset({
    MainBetType.SINGLE, MainBetType.SINGLE_PANNA, MainBetType.DOUBLE_PANNA, MainBetType.TRIPLE_PANNA,
})

HALF_SANGAM_SIDES = ("openDigitClosePanna", "closeDigitOpenPanna")


@dataclass(frozen=True)
class Draw:
    panna: str
    digit: int


@dataclass(frozen=True)
class SessionDraws:
    open: Optional[Draw] = None
    close: Optional[Draw] = None

    def for_session(self, session: str | None) -> Optional[Draw]:
        if session == SESSION_OPEN:
            return self.open
        if session == SESSION_CLOSE:
            return self.close
        return None

    @property
    def complete(self) -> bool:
        return self.open is not None and self.close is not None


@dataclass(frozen=True)
class Outcome:
    won: bool
    result: str


def _as_int(s: str) -> Optional[int]:
    try:
        return int(str(s).strip())
    except ValueError:
        return None


def _both(d: SessionDraws, sep: str) -> str:
    return f"{d.open.panna}-{d.open.digit}{sep}{d.close.panna}-{d.close.digit}"


# ------------------------------
# main family
# ------------------------------
def _single(bet_number: str, session: str | None, draws: SessionDraws) -> Optional[Outcome]:
    draw = draws.for_session(session)
    if draw is None:
        return None
    return Outcome(won=draw.digit == _as_int(bet_number), result=f"{draw.panna}-{draw.digit}")


def _panna(bet_number: str, session: str | None, draws: SessionDraws) -> Optional[Outcome]:
    draw = draws.for_session(session)
    if draw is None:
        return None
    return Outcome(won=draw.panna == bet_number, result=f"{draw.panna}-{draw.digit}")


def _jodi(bet_number: str, session: str | None, draws: SessionDraws) -> Optional[Outcome]:
    if not draws.complete:
        return None
    won = jodi(draws.open.digit, draws.close.digit) == bet_number
    return Outcome(won=won, result=_both(draws, "-"))


def _half_sangam(bet_number: str, session: str | None, draws: SessionDraws) -> Optional[Outcome]:
    if not draws.complete:
        return None
    parts = bet_number.split("|")
    won = False
    if len(parts) == 3:
        side, digit, panna = parts
        if side == "openDigitClosePanna":
            won = draws.open.digit == _as_int(digit) and draws.close.panna == panna
        elif side == "closeDigitOpenPanna":
            won = draws.close.digit == _as_int(digit) and draws.open.panna == panna
    return Outcome(won=won, result=_both(draws, "/"))


def _full_sangam(bet_number: str, session: str | None, draws: SessionDraws) -> Optional[Outcome]:
    if not draws.complete:
        return None
    parts = bet_number.split("|")
    won = len(parts) == 2 and draws.open.panna == parts[0] and draws.close.panna == parts[1]
    return Outcome(won=won, result=_both(draws, "/"))


MainResolver = Callable[[str, Optional[str], SessionDraws], Optional[Outcome]]

MAIN_RESOLVERS: Dict[MainBetType, MainResolver] = {
    MainBetType.SINGLE: _single,
    MainBetType.JODI: _jodi,
    MainBetType.SINGLE_PANNA: _panna,
    MainBetType.DOUBLE_PANNA: _panna,
    MainBetType.TRIPLE_PANNA: _panna,
    MainBetType.HALF_SANGAM: _half_sangam,
    MainBetType.FULL_SANGAM: _full_sangam,
}

MAIN_RATE_KEY: Dict[MainBetType, str] = {
    MainBetType.SINGLE: "singleDigit",
    MainBetType.JODI: "jodiDigit",
    MainBetType.SINGLE_PANNA: "singlePana",
    MainBetType.DOUBLE_PANNA: "doublePana",
    MainBetType.TRIPLE_PANNA: "triplePana",
    MainBetType.HALF_SANGAM: "halfSangam",
    MainBetType.FULL_SANGAM: "fullSangam",
}


def resolve_main(bet_type: MainBetType, bet_number: str, session: str | None, draws: SessionDraws) -> Optional[Outcome]:
    return MAIN_RESOLVERS[bet_type](str(bet_number), session, draws)


# ------------------------------
# starline family
# ------------------------------
def _last_digit(bet_number: str, winning_number: str) -> Outcome:
    return Outcome(won=winning_number[-1:] == bet_number, result=winning_number)


def _exact(bet_number: str, winning_number: str) -> Outcome:
    return Outcome(won=winning_number == bet_number, result=winning_number)


STARLINE_RESOLVERS: Dict[StarlineBetType, Callable[[str, str], Outcome]] = {
    StarlineBetType.SINGLE_DIGIT: _last_digit,
    StarlineBetType.SINGLE_PANA: _exact,
    StarlineBetType.DOUBLE_PANA: _exact,
    StarlineBetType.TRIPLE_PANA: _exact,
}

STARLINE_RATE_KEY: Dict[StarlineBetType, str] = {t: t.value for t in StarlineBetType}


def resolve_starline(bet_type: StarlineBetType, bet_number: str, winning_number: str) -> Outcome:
    return STARLINE_RESOLVERS[bet_type](str(bet_number), str(winning_number))


def _check_exhaustive() -> None:
    for enum_cls, *tables in (
        (MainBetType, MAIN_RESOLVERS, MAIN_RATE_KEY),
        (StarlineBetType, STARLINE_RESOLVERS, STARLINE_RATE_KEY),
    ):
        for table in tables:
            missing = set(enum_cls) - set(table)
            if missing:
                raise RuntimeError(f"{enum_cls.__name__} members without a rule: {sorted(m.value for m in missing)}")


_check_exhaustive()
