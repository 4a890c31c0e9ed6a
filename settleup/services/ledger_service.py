from sqlalchemy import Numeric, select, func
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.core.guard import Ledger
from settleup.models.expense import Expense
from settleup.models.expense_share import ExpenseShare
from settleup.models.settlement import Settlement


async def fetch_ledger(db: AsyncSession, group_id: str) -> Ledger:
    """
    Reads the rows the balance engine needs for one group.

    paid rows     : one per live expense, attributed to the paying member
    owed rows     : one per (expense, member), duplicate shares summed
    settlements   : completed settlements only
    """
    paid_q = (
        select(
            Expense.paid_by.label("member_id"),
            func.abs(Expense.amount, type_=Numeric(12, 2)).label("amount"),
        )
        .where(Expense.group_id == group_id, Expense.is_deleted == False)
    )
    paid_rows = (await db.execute(paid_q)).all()

    owed_q = (
        select(
            ExpenseShare.member_id,
            func.sum(ExpenseShare.amount).label("amount"),
        )
        .join(Expense, Expense.id == ExpenseShare.expense_id)
        .where(Expense.group_id == group_id, Expense.is_deleted == False)
        .group_by(ExpenseShare.expense_id, ExpenseShare.member_id)
    )
    owed_rows = (await db.execute(owed_q)).all()

    settlements_q = (
        select(
            Settlement.payer_member_id,
            Settlement.receiver_member_id,
            Settlement.amount,
        )
        .where(Settlement.group_id == group_id, Settlement.status == "completed")
    )
    settlements = (await db.execute(settlements_q)).all()

    return Ledger(
        paid_rows=list(paid_rows),
        owed_rows=list(owed_rows),
        settlements=list(settlements),
        expense_count=len(paid_rows),
    )
