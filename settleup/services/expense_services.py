import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from fastapi import HTTPException
from settleup.core.dependencies import get_accessible_group, get_group_member
from settleup.core.utils import qround
from settleup.models.expense import Expense
from settleup.models.expense_share import ExpenseShare
from settleup.models.group import Group
from settleup.models.group_member import GroupMember
from settleup.schemas.expense import ExpenseCreate

logger = logging.getLogger(__name__)


async def create_expense(db: AsyncSession, data: ExpenseCreate, user_id: str, group_id: str):
    await get_accessible_group(db, group_id, user_id)
    await get_group_member(db, group_id, data.paid_by)

    # -----------------------------------
    # 1. Validate shares
    # -----------------------------------
    member_ids = [s.member_id for s in data.shares]

    if not member_ids:
        raise HTTPException(400, "An expense needs at least one share")

    if len(member_ids) != len(set(member_ids)):
        raise HTTPException(400, "Duplicate members found in shares")

    total_shares = qround(sum(s.amount for s in data.shares))
    if total_shares != qround(data.amount):
        raise HTTPException(
            400,
            f"Share total ({total_shares}) must equal expense amount ({qround(data.amount)})"
        )

    # -----------------------------------
    # 2. Validate ALL share members belong to the group
    # -----------------------------------
    members_q = select(GroupMember.id).where(
        GroupMember.group_id == group_id,
        GroupMember.id.in_(member_ids)
    )
    members_res = await db.execute(members_q)
    valid_member_ids = {row[0] for row in members_res.all()}

    if set(member_ids) != valid_member_ids:
        raise HTTPException(
            400,
            "One or more members in shares are not members of the group"
        )

    # -----------------------------------
    # 3. Create expense and its shares
    # -----------------------------------
    expense = Expense(
        group_id=group_id,
        paid_by=data.paid_by,
        amount=qround(data.amount),
        title=data.title,
        created_by=user_id,
    )

    db.add(expense)
    await db.flush()  # generates expense.id

    db.add_all([
        ExpenseShare(
            expense_id=expense.id,
            member_id=s.member_id,
            amount=qround(s.amount)
        )
        for s in data.shares
    ])

    await db.commit()
    await db.refresh(expense)

    logger.info("Expense recorded | group=%s expense=%s amount=%s", group_id, expense.id, expense.amount)
    return expense


async def delete_expense(db: AsyncSession, user_id: str, expense_id: str):
    q = select(Expense).where(Expense.id == expense_id, Expense.is_deleted == False)
    res = await db.execute(q)
    expense = res.scalar_one_or_none()

    if not expense:
        raise HTTPException(404, "Expense not found")

    group = await db.get(Group, expense.group_id)
    payer = await db.get(GroupMember, expense.paid_by)

    # Authorization: group owner or the paying member's user
    if group.owner_id != user_id and (payer is None or payer.user_id != user_id):
        raise HTTPException(403, "You cannot delete this expense")

    expense.is_deleted = True
    await db.commit()

    logger.info("Expense deleted | group=%s expense=%s", group.id, expense_id)
    return {"status": "deleted"}


async def get_expenses_by_group(db: AsyncSession, group_id: str, user_id: str):
    await get_accessible_group(db, group_id, user_id)

    q = (
        select(Expense)
        .where(Expense.group_id == group_id, Expense.is_deleted == False)
        .order_by(Expense.created_at.desc(), Expense.id.desc())
    )
    res = await db.execute(q)
    return res.scalars().all()
