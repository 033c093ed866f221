from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Numeric, DateTime, func
from matka.db.session import Base, BigId

ADMIN_ROLES = ("admin", "subadmin")

class User(Base):
    __tablename__ = "user"

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    nickname: Mapped[str | None] = mapped_column(String(64))
    role: Mapped[str] = mapped_column(String(16), default="user")
    status: Mapped[int] = mapped_column(Integer, default=1)

    balance: Mapped[Decimal] = mapped_column(Numeric(16, 2), default=0)
    total_bet_amount: Mapped[Decimal] = mapped_column(Numeric(16, 2), default=0)
    total_payout: Mapped[Decimal] = mapped_column(Numeric(16, 2), default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )
