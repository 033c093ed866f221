from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Numeric, DateTime, UniqueConstraint, func
from matka.db.session import Base, BigId

class GameRate(Base):
    __tablename__ = "game_rate"
    __table_args__ = (UniqueConstraint("family", "rate_key", name="uq_rate_family_key"),)

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    family: Mapped[str] = mapped_column(String(16), index=True)   # 'main' | 'starline'
    rate_key: Mapped[str] = mapped_column(String(32))             # 'singleDigit', 'jodiDigit', ...
    min_rate: Mapped[Decimal] = mapped_column(Numeric(12, 4))
    max_rate: Mapped[Decimal] = mapped_column(Numeric(12, 4))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )
