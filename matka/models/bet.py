
from datetime import date, datetime
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Numeric, Date, DateTime, BigInteger, Index, func
from matka.db.session import Base, BigId

class Bet(Base):
    __tablename__ = "bet"
    __table_args__ = (
        Index("ix_bet_scope_status", "game_id", "game_date", "status"),
        Index("ix_bet_user_date", "user_id", "bet_date"),
    )

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    game_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    game_name: Mapped[str] = mapped_column(String(64), nullable=False)
    # kept as plain text so rows with an unrecognised type survive and are skipped
    bet_type: Mapped[str] = mapped_column(String(16), nullable=False)
    session: Mapped[str | None] = mapped_column(String(8))        # 'open' | 'close' | None for jodi/sangam
    game_date: Mapped[date] = mapped_column(Date, nullable=False)
    bet_number: Mapped[str] = mapped_column(String(64), nullable=False)
    bet_amount: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)
    potential_win: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="pending")
    result: Mapped[str | None] = mapped_column(String(64))
    win_amount: Mapped[Decimal] = mapped_column(Numeric(16, 2), default=0)
    bet_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    result_date: Mapped[datetime | None] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

class StarlineBet(Base):
    __tablename__ = "starline_bet"
    __table_args__ = (
        Index("ix_starline_bet_scope_status", "game_id", "bet_date", "status"),
        Index("ix_starline_bet_user_date", "user_id", "bet_date"),
    )

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    game_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    game_name: Mapped[str] = mapped_column(String(64), nullable=False)
    bet_type: Mapped[str] = mapped_column(String(16), nullable=False)
    game_date: Mapped[date] = mapped_column(Date, nullable=False)
    bet_number: Mapped[str] = mapped_column(String(3), nullable=False)
    bet_amount: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)
    potential_win: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="pending")
    result: Mapped[str | None] = mapped_column(String(16))
    win_amount: Mapped[Decimal] = mapped_column(Numeric(16, 2), default=0)
    bet_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    result_date: Mapped[datetime | None] = mapped_column(DateTime)
    ip: Mapped[str | None] = mapped_column(String(64))

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

class BetModification(Base):
    """Append-only record of admin corrections to a bet."""
    __tablename__ = "bet_modification"

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    family: Mapped[str] = mapped_column(String(16), nullable=False)   # 'main' | 'starline'
    bet_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    modified_by: Mapped[int] = mapped_column(BigInteger, nullable=False)
    action: Mapped[str] = mapped_column(String(32), nullable=False)
    original_bet_number: Mapped[str | None] = mapped_column(String(64))
    new_bet_number: Mapped[str | None] = mapped_column(String(64))
    original_status: Mapped[str | None] = mapped_column(String(16))
    original_win_amount: Mapped[Decimal | None] = mapped_column(Numeric(16, 2))
    reason: Mapped[str | None] = mapped_column(String(255))
    modified_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
