
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Numeric, DateTime, BigInteger, SmallInteger, UniqueConstraint, func
from matka.db.session import Base, BigId

class WalletLedger(Base):
    __tablename__ = "wallet_ledger"
    # one payout / one refund per bet, whatever the retry count
    __table_args__ = (UniqueConstraint("biz_type", "ref_table", "ref_id", name="uq_ledger_ref"),)

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    direction: Mapped[int] = mapped_column(SmallInteger, nullable=False)  # 1 in, 2 out
    amount: Mapped[Decimal] = mapped_column(Numeric(16,2), nullable=False)
    biz_type: Mapped[int] = mapped_column(SmallInteger, nullable=False)  # 20 bet, 21 cancel refund, 30 payout
    ref_table: Mapped[str | None] = mapped_column(String(32))
    ref_id: Mapped[int | None] = mapped_column(BigInteger)
    remark: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
