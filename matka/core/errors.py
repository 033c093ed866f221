# Caller-visible failures raised from the service layer.
from fastapi import HTTPException, status


class GameNotFound(HTTPException):
    def __init__(self, game_id: int | None = None):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
        self.game_id = game_id


class ResultNotFound(HTTPException):
    def __init__(self):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail="Result not found")


class DuplicateResult(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Result already declared for this game on this date",
        )


class BetNotCancellable(HTTPException):
    def __init__(self, detail: str = "Bet not found or cannot be cancelled"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class BettingClosed(HTTPException):
    def __init__(self, detail: str = "Betting time has closed"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class CancelWindowExpired(HTTPException):
    def __init__(self, seconds: int):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Bet can only be cancelled within {seconds // 60} minutes of placement",
        )


class MissingRate(HTTPException):
    def __init__(self, rate_key: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Game rate missing: {rate_key}")
        self.rate_key = rate_key


class InsufficientBalance(HTTPException):
    def __init__(self):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail="Insufficient balance")
