from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from matka.constants import FAMILY_MAIN, FAMILY_STARLINE
from matka.models.rate import GameRate

MAIN_RATE_KEYS = ("singleDigit", "jodiDigit", "singlePana", "doublePana", "triplePana", "halfSangam", "fullSangam")
STARLINE_RATE_KEYS = ("singleDigit", "singlePana", "doublePana", "triplePana")

RATE_KEYS = {
    FAMILY_MAIN: MAIN_RATE_KEYS,
    FAMILY_STARLINE: STARLINE_RATE_KEYS,
}


@dataclass(frozen=True)
class Rate:
    min: Decimal
    max: Decimal


def dec(v) -> Decimal:
    return v if isinstance(v, Decimal) else Decimal(str(v))


def q2(v) -> Decimal:
    return dec(v).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def payout_from_rate(min_rate, max_rate, stake) -> Decimal:
    """stake / min * max, unrounded. Zero when any input is not positive."""
    mn, mx, st = dec(min_rate), dec(max_rate), dec(stake)
    if mn <= 0 or mx <= 0 or st <= 0:
        return Decimal("0")
    return st / mn * mx


def payout_fixed(max_rate, stake) -> Decimal:
    """stake * max, unrounded (starline)."""
    mx, st = dec(max_rate), dec(stake)
    if mx <= 0 or st <= 0:
        return Decimal("0")
    return st * mx


def rate_metrics(min_rate, max_rate) -> dict:
    mn, mx = dec(min_rate), dec(max_rate)
    if mn <= 0 or mx <= 0:
        return {"multiplier": Decimal("0"), "roi_percent": Decimal("0")}
    return {"multiplier": mx / mn, "roi_percent": (mx - mn) / mn * 100}


async def load_rates(session: AsyncSession, family: str) -> Dict[str, Rate]:
    """
    Rate card of a family as {rate_key: Rate}.
    Keys that were never configured are simply absent; callers defer on them.
    """
    rs = await session.execute(
        select(GameRate.rate_key, GameRate.min_rate, GameRate.max_rate).where(GameRate.family == family)
    )
    out: Dict[str, Rate] = {}
    for key, mn, mx in rs.all():
        out[str(key)] = Rate(min=dec(mn), max=dec(mx))
    return out


async def upsert_rates(session: AsyncSession, family: str, rates: Dict[str, Rate]) -> Dict[str, Rate]:
    allowed = RATE_KEYS[family]
    unknown = set(rates) - set(allowed)
    if unknown:
        raise ValueError(f"unknown rate keys for {family}: {sorted(unknown)}")

    rs = await session.execute(select(GameRate).where(GameRate.family == family))
    existing = {row.rate_key: row for row in rs.scalars().all()}
    for key, rate in rates.items():
        row = existing.get(key)
        if row is None:
            session.add(GameRate(family=family, rate_key=key, min_rate=rate.min, max_rate=rate.max))
        else:
            row.min_rate, row.max_rate = rate.min, rate.max
    await session.flush()
    return await load_rates(session, family)
