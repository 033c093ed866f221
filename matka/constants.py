# Status values and redis key builders shared across families.

BET_PENDING = "pending"
BET_WON = "won"
BET_LOST = "lost"
BET_CANCELLED = "cancelled"

SESSION_OPEN = "open"
SESSION_CLOSE = "close"

FAMILY_MAIN = "main"
FAMILY_STARLINE = "starline"

RESULT_PROCESSING = "processing"
RESULT_COMPLETED = "completed"

# wallet_ledger.direction
DIRECTION_IN = 1
DIRECTION_OUT = 2

# wallet_ledger.biz_type
BIZ_BET = 20
BIZ_CANCEL_REFUND = 21
BIZ_PAYOUT = 30


def k_last_result(family: str, game_id: int) -> str:
    return f"matka:{family}:{game_id}:last_result"


def k_history(family: str, game_id: int) -> str:
    return f"matka:{family}:{game_id}:history"
