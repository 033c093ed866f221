from datetime import date, datetime
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

# main declaration (admin)
class SessionDeclareIn(BaseModel):
    game_id: int
    game_date: date
    session: Literal["open", "close"]
    panna: str = Field(pattern=r"^\d{3}$")
    digit: Optional[int] = Field(default=None, ge=0, le=9)   # derived from the panna when omitted

class SessionResultOut(BaseModel):
    id: int
    game_id: int
    game_name: str
    game_date: date
    session: str
    panna: str
    digit: int
    declared_by: int

    model_config = ConfigDict(from_attributes=True)

class SettlementOut(BaseModel):
    processed: int
    won: int
    lost: int
    deferred: int
    skipped: int
    failed: int
    total_payout: float

class SessionDeclareOut(BaseModel):
    message: str = "Result declared"
    result: SessionResultOut
    settlement: SettlementOut

# starline declaration (admin)
class StarlineDeclareIn(BaseModel):
    game_id: int
    winning_number: str = Field(pattern=r"^\d{3}$")
    game_date: Optional[date] = None

class BetTypeStats(BaseModel):
    totalBets: int = 0
    winningBets: int = 0
    totalBetAmount: float = 0
    totalPayout: float = 0

class StarlineResultOut(BaseModel):
    id: int
    game_id: int
    game_name: str
    game_date: date
    winning_number: str
    digit: int
    declared_by: int
    declared_at: datetime
    total_bets: int
    total_bet_amount: float
    total_payout: float
    winning_bets: int
    bet_type_breakdown: Optional[Dict[str, BetTypeStats]] = None
    status: str

    model_config = ConfigDict(from_attributes=True)

class StarlineSummaryOut(BaseModel):
    total_bets_processed: int
    total_bet_amount: float
    total_payout: float
    winning_bets: int
    profit_loss: float
    win_percentage: float

class StarlineDeclareOut(BaseModel):
    message: str = "Result declared and payouts processed successfully"
    result: StarlineResultOut
    summary: StarlineSummaryOut
    settlement: SettlementOut

class SessionResultsResp(BaseModel):
    results: List[SessionResultOut]

class StarlineResultsResp(BaseModel):
    results: List[StarlineResultOut]

# check winners (admin, read-only)
class WinnerOut(BaseModel):
    bet_id: int
    user_id: int
    bet_type: str
    bet_number: str
    session: Optional[str] = None
    bet_amount: float
    win_amount: Optional[float] = None   # None when the bet type has no rate configured
    result: str

class WinnerStatsOut(BaseModel):
    totalWinners: int
    totalWinAmount: float
    totalBetAmount: float
    pendingBets: int
    profitLoss: float

class CheckWinnersOut(BaseModel):
    winners: List[WinnerOut]
    stats: WinnerStatsOut
