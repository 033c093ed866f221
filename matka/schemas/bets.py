from datetime import date, datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from matka.services.bet_numbers import check_main_number, check_starline_number
from matka.services.resolvers import MainBetType, StarlineBetType, SESSION_BOUND

class BetPlaceIn(BaseModel):
    game_id: int
    game_date: date
    bet_type: MainBetType
    session: Optional[Literal["open", "close"]] = None   # required for single / panna bets
    bet_number: str
    bet_amount: float = Field(gt=0)

    @model_validator(mode="after")
    def _shape(self):
        if self.bet_type in SESSION_BOUND and self.session is None:
            raise ValueError(f"session is required for {self.bet_type.value} bets")
        self.bet_number = check_main_number(self.bet_type, self.bet_number)
        return self

class StarlineBetPlaceIn(BaseModel):
    game_id: int
    bet_type: StarlineBetType
    bet_number: str
    bet_amount: float = Field(gt=0)

    @model_validator(mode="after")
    def _shape(self):
        self.bet_number = check_starline_number(self.bet_type, self.bet_number)
        return self

class BetOut(BaseModel):
    id: int
    game_id: int
    game_name: str
    bet_type: str
    session: Optional[str] = None
    game_date: date
    bet_number: str
    bet_amount: float
    potential_win: float
    status: str
    result: Optional[str] = None
    win_amount: float
    bet_date: datetime
    result_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class BetPlaceOut(BaseModel):
    message: str = "Bet placed successfully"
    bet: BetOut
    balance: float

class BetsResp(BaseModel):
    bets: List[BetOut]

class BetCancelOut(BaseModel):
    message: str = "Bet cancelled successfully"
    bet_id: int
    refund_amount: float
    balance: float

class BetAmendIn(BaseModel):
    family: Literal["main", "starline"] = "main"
    bet_id: int
    new_bet_number: str
    reason: Optional[str] = None

class BetAmendOut(BaseModel):
    bet_id: int
    original_bet_number: str
    new_bet_number: str
    status: str
