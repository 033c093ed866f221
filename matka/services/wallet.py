
from decimal import Decimal
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from matka.constants import BIZ_BET, BIZ_PAYOUT, BIZ_CANCEL_REFUND, DIRECTION_IN, DIRECTION_OUT
from matka.core.errors import InsufficientBalance
from matka.models.user import User
from matka.models.wallet import WalletLedger
from matka.services.rates import q2


class WalletCreditError(Exception):
    pass


async def credit(
    session: AsyncSession,
    user_id: int,
    amount: Decimal,
    biz_type: int,
    ref_table: str,
    ref_id: int,
    remark: str | None = None,
) -> Decimal:
    """
    Add ``amount`` to the user's balance inside the caller's transaction.
    The ledger row goes first: its (biz_type, ref_table, ref_id) key is unique,
    so a second credit for the same bet fails with IntegrityError.
    """
    amt = q2(amount)
    if amt <= 0:
        raise WalletCreditError(f"non-positive credit {amt} for {ref_table}#{ref_id}")

    session.add(WalletLedger(
        user_id=user_id,
        direction=DIRECTION_IN,
        amount=amt,
        biz_type=biz_type,
        ref_table=ref_table,
        ref_id=ref_id,
        remark=remark,
    ))
    await session.flush()

    values = {"balance": User.balance + amt}
    if biz_type == BIZ_PAYOUT:
        values["total_payout"] = User.total_payout + amt
    elif biz_type == BIZ_CANCEL_REFUND:
        values["total_bet_amount"] = User.total_bet_amount - amt
    rs = await session.execute(
        update(User).where(User.id == user_id).values(**values).execution_options(synchronize_session=False)
    )
    if rs.rowcount != 1:
        raise WalletCreditError(f"user {user_id} not found")
    return amt


async def debit_for_bet(session: AsyncSession, user_id: int, amount: Decimal) -> Decimal:
    """Conditional debit; raises InsufficientBalance when the balance does not cover it."""
    amt = q2(amount)
    rs = await session.execute(
        update(User)
        .where(User.id == user_id, User.balance >= amt)
        .values(balance=User.balance - amt, total_bet_amount=User.total_bet_amount + amt)
        .execution_options(synchronize_session=False)
    )
    if rs.rowcount != 1:
        raise InsufficientBalance()
    return amt


def bet_ledger_entry(user_id: int, amount: Decimal, ref_table: str, ref_id: int) -> WalletLedger:
    return WalletLedger(
        user_id=user_id,
        direction=DIRECTION_OUT,
        amount=q2(amount),
        biz_type=BIZ_BET,
        ref_table=ref_table,
        ref_id=ref_id,
        remark="bet placed",
    )
