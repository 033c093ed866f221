from typing import Dict
from pydantic import BaseModel, Field

class RateIn(BaseModel):
    min: float = Field(gt=0)
    max: float = Field(gt=0)

class RateOut(BaseModel):
    min: float
    max: float
    multiplier: float
    roi_percent: float

class RateCardOut(BaseModel):
    family: str
    rates: Dict[str, RateOut]
