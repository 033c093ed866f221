from datetime import date, datetime
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Date, DateTime, BigInteger, SmallInteger, Integer, Numeric, JSON, UniqueConstraint, func
from matka.db.session import Base, BigId

class SessionResult(Base):
    __tablename__ = "session_result"
    __table_args__ = (UniqueConstraint("game_id", "game_date", "session", name="uq_session_result_scope"),)

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    game_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    game_name: Mapped[str] = mapped_column(String(64), nullable=False)
    game_date: Mapped[date] = mapped_column(Date, nullable=False)
    session: Mapped[str] = mapped_column(String(8), nullable=False)   # 'open' | 'close'
    panna: Mapped[str] = mapped_column(String(3), nullable=False)
    digit: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    declared_by: Mapped[int] = mapped_column(BigInteger, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

class StarlineResult(Base):
    __tablename__ = "starline_result"
    __table_args__ = (UniqueConstraint("game_id", "game_date", name="uq_starline_result_scope"),)

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    game_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    game_name: Mapped[str] = mapped_column(String(64), nullable=False)
    game_date: Mapped[date] = mapped_column(Date, nullable=False)
    winning_number: Mapped[str] = mapped_column(String(3), nullable=False)
    digit: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    declared_by: Mapped[int] = mapped_column(BigInteger, nullable=False)
    declared_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # aggregated over the scope's settled bets
    total_bets: Mapped[int] = mapped_column(Integer, default=0)
    total_bet_amount: Mapped[Decimal] = mapped_column(Numeric(16, 2), default=0)
    total_payout: Mapped[Decimal] = mapped_column(Numeric(16, 2), default=0)
    winning_bets: Mapped[int] = mapped_column(Integer, default=0)
    bet_type_breakdown: Mapped[dict | None] = mapped_column(JSON)

    status: Mapped[str] = mapped_column(String(16), default="processing")
    processing_started: Mapped[datetime | None] = mapped_column(DateTime)
    processing_completed: Mapped[datetime | None] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )
