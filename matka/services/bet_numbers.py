"""Shape checks for bet numbers at placement / amendment time."""
import re

from matka.services.digits import classify_panna
from matka.services.resolvers import HALF_SANGAM_SIDES, MainBetType, StarlineBetType

_DIGIT = re.compile(r"^\d$")
_JODI = re.compile(r"^\d{2}$")
_PANNA = re.compile(r"^\d{3}$")

_PANNA_KIND = {
    MainBetType.SINGLE_PANNA: "single",
    MainBetType.DOUBLE_PANNA: "double",
    MainBetType.TRIPLE_PANNA: "triple",
    StarlineBetType.SINGLE_PANA: "single",
    StarlineBetType.DOUBLE_PANA: "double",
    StarlineBetType.TRIPLE_PANA: "triple",
}


def _panna_of_kind(number: str, kind: str) -> None:
    if not _PANNA.match(number):
        raise ValueError("panna must be 3 digits")
    if classify_panna(number) != kind:
        raise ValueError(f"{number} is not a {kind} panna")


def check_main_number(bet_type: MainBetType, number: str) -> str:
    number = str(number).strip()
    if bet_type == MainBetType.SINGLE:
        if not _DIGIT.match(number):
            raise ValueError("single bet number must be one digit")
    elif bet_type == MainBetType.JODI:
        if not _JODI.match(number):
            raise ValueError("jodi bet number must be two digits")
    elif bet_type in (MainBetType.SINGLE_PANNA, MainBetType.DOUBLE_PANNA, MainBetType.TRIPLE_PANNA):
        _panna_of_kind(number, _PANNA_KIND[bet_type])
    elif bet_type == MainBetType.HALF_SANGAM:
        parts = number.split("|")
        if len(parts) != 3 or parts[0] not in HALF_SANGAM_SIDES or not _DIGIT.match(parts[1]) or not _PANNA.match(parts[2]):
            raise ValueError("half sangam must look like side|digit|panna")
    elif bet_type == MainBetType.FULL_SANGAM:
        parts = number.split("|")
        if len(parts) != 2 or not all(_PANNA.match(p) for p in parts):
            raise ValueError("full sangam must look like openPanna|closePanna")
    return number


def check_starline_number(bet_type: StarlineBetType, number: str) -> str:
    number = str(number).strip()
    if bet_type == StarlineBetType.SINGLE_DIGIT:
        if not _DIGIT.match(number):
            raise ValueError("single digit bet number must be one digit")
    else:
        _panna_of_kind(number, _PANNA_KIND[bet_type])
    return number
