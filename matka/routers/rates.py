from typing import Dict, Literal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from matka.core.auth import require_admin
from matka.db.session import get_session
from matka.models.user import User
from matka.schemas.rates import RateIn, RateCardOut
from matka.services.rates import Rate, dec, load_rates, upsert_rates, rate_metrics

router = APIRouter(prefix="/api/rates", tags=["rates"])

Family = Literal["main", "starline"]


def _card(family: str, rates: Dict[str, Rate]) -> dict:
    out = {}
    for key, rate in rates.items():
        m = rate_metrics(rate.min, rate.max)
        out[key] = {
            "min": float(rate.min),
            "max": float(rate.max),
            "multiplier": float(m["multiplier"]),
            "roi_percent": float(m["roi_percent"]),
        }
    return {"family": family, "rates": out}


@router.get("/{family}", response_model=RateCardOut)
async def get_rates(family: Family, session: AsyncSession = Depends(get_session)):
    return _card(family, await load_rates(session, family))


@router.put("/{family}", response_model=RateCardOut)
async def put_rates(
        family: Family,
        payload: Dict[str, RateIn],
        session: AsyncSession = Depends(get_session),
        _: User = Depends(require_admin),
):
    try:
        rates = await upsert_rates(
            session, family, {k: Rate(min=dec(v.min), max=dec(v.max)) for k, v in payload.items()}
        )
        await session.commit()
    except ValueError as e:
        await session.rollback()
        raise HTTPException(400, str(e)) from e
    except Exception:
        await session.rollback(); raise
    return _card(family, rates)
