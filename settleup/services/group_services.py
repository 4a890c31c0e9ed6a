import logging
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, or_
from settleup.core.balances import MemberBalance, get_suggested_settlements
from settleup.core.dependencies import get_accessible_group, get_owned_group
from settleup.core.utils import ZERO, qround, to_decimal
from settleup.models.expense import Expense
from settleup.models.expense_share import ExpenseShare
from settleup.models.group import Group
from settleup.models.group_member import GroupMember
from settleup.schemas.balances import (
    FriendBalance,
    GroupBalanceSummary,
    GroupDetailOut,
    MemberBalanceOut,
    SuggestionOut,
    SummaryOut,
)
from settleup.schemas.expense import ActivityItem
from settleup.schemas.group import GroupListItem, GroupMemberCreate, GroupMemberOut, GroupOut
from settleup.services.ledger_service import fetch_ledger

logger = logging.getLogger(__name__)

async def create_group(db: AsyncSession, name: str, owner_id: str, owner_display_name: str = "You"):
    group = Group(name=name.strip(), owner_id=owner_id)
    db.add(group)
    await db.flush()

    member = GroupMember(group_id=group.id, user_id=owner_id, display_name=owner_display_name)
    db.add(member)

    await db.commit()
    await db.refresh(group)

    logger.info("Group created | group=%s owner=%s", group.id, owner_id)
    return group

async def add_member(db: AsyncSession, group_id: str, user_id: str, data: GroupMemberCreate):
    await get_owned_group(db, group_id, user_id)

    member = GroupMember(
        group_id=group_id,
        user_id=data.user_id,
        display_name=data.display_name.strip(),
        email=data.email.lower() if data.email else None,
    )
    db.add(member)
    await db.commit()
    await db.refresh(member)
    return member

async def link_member_by_email(db: AsyncSession, user_id: str, email: Optional[str]):
    """Attach invited-by-email memberships to the user once they sign in."""
    if not email:
        return

    await db.execute(
        update(GroupMember)
        .where(GroupMember.email == email.lower(), GroupMember.user_id.is_(None))
        .values(user_id=user_id)
    )
    await db.commit()

async def get_accessible_group_ids(db: AsyncSession, user_id: str, email: Optional[str] = None) -> List[str]:
    await link_member_by_email(db, user_id, email)

    q = (
        select(Group.id)
        .outerjoin(GroupMember, GroupMember.group_id == Group.id)
        .where(or_(Group.owner_id == user_id, GroupMember.user_id == user_id))
        .distinct()
    )
    result = await db.execute(q)
    return list(result.scalars().all())

async def list_group_for_user(db: AsyncSession, user_id: str, email: Optional[str] = None):
    ids = await get_accessible_group_ids(db, user_id, email)
    if not ids:
        return []

    q = (
        select(Group, func.count(GroupMember.id).label("member_count"))
        .outerjoin(GroupMember, GroupMember.group_id == Group.id)
        .where(Group.id.in_(ids))
        .group_by(Group.id)
        .order_by(Group.created_at.desc())
    )
    rows = (await db.execute(q)).all()

    return [
        GroupListItem(
            id=group.id,
            name=group.name,
            owner_id=group.owner_id,
            created_at=group.created_at,
            member_count=member_count,
        )
        for group, member_count in rows
    ]

def person_key(member: GroupMember) -> str:
    """Identity of a person across groups: user id, then email, then "<group>-<member>"."""
    return member.user_id or member.email or f"{member.group_id}-{member.id}"

async def _group_members(db: AsyncSession, group_id: str) -> List[GroupMember]:
    q = select(GroupMember).where(GroupMember.group_id == group_id).order_by(GroupMember.joined_at, GroupMember.id)
    return list((await db.execute(q)).scalars().all())

async def _group_activity(db: AsyncSession, group_id: str) -> List[ActivityItem]:
    q = (
        select(Expense, func.count(ExpenseShare.id).label("split_count"))
        .outerjoin(ExpenseShare, ExpenseShare.expense_id == Expense.id)
        .where(Expense.group_id == group_id, Expense.is_deleted == False)
        .group_by(Expense.id)
        .order_by(Expense.created_at.desc(), Expense.id.desc())
    )
    rows = (await db.execute(q)).all()

    return [
        ActivityItem(
            id=expense.id,
            title=expense.title,
            amount=qround(abs(expense.amount)),
            paid_by=expense.paid_by,
            split_count=split_count,
            created_at=expense.created_at,
        )
        for expense, split_count in rows
    ]

async def get_group_detail(db: AsyncSession, group_id: str, user_id: str) -> GroupDetailOut:
    group = await get_accessible_group(db, group_id, user_id)
    members = await _group_members(db, group_id)
    member_out = {m.id: GroupMemberOut.model_validate(m) for m in members}

    ledger = await fetch_ledger(db, group_id)

    # no expenses: zero balances, stale settlements ignored
    if ledger.expense_count == 0:
        balances = {}
        suggestions = []
    else:
        balances = ledger.balances()
        suggestions = get_suggested_settlements(balances)

    balance_list = [
        balances.get(m.id, MemberBalance(member_id=m.id)) for m in members
    ]

    total_spend = qround(sum((to_decimal(r.amount) for r in ledger.paid_rows), ZERO))

    return GroupDetailOut(
        group=GroupOut.model_validate(group),
        is_owner=group.owner_id == user_id,
        members=list(member_out.values()),
        activity=await _group_activity(db, group_id),
        balances=[MemberBalanceOut.model_validate(b) for b in balance_list],
        suggestions=[
            SuggestionOut(
                from_member_id=s.from_member_id,
                to_member_id=s.to_member_id,
                amount=s.amount,
                from_member=member_out.get(s.from_member_id),
                to_member=member_out.get(s.to_member_id),
            )
            for s in suggestions
        ],
        total_spend=total_spend,
    )

async def get_summary(db: AsyncSession, user_id: str, email: Optional[str] = None) -> SummaryOut:
    """
    Caller's position across every accessible group.

    my_balance is the caller's member total in each group. friends nets the
    caller against every other member, keyed by user id, email, or
    "<group>-<member>" for members without either.
    """
    ids = await get_accessible_group_ids(db, user_id, email)

    q = select(Group).where(Group.id.in_(ids)).order_by(Group.created_at.desc())
    groups = (await db.execute(q)).scalars().all() if ids else []

    total_owed_to_me = ZERO
    total_i_owe = ZERO
    friends = {}
    group_summaries = []

    for group in groups:
        members = await _group_members(db, group.id)
        ledger = await fetch_ledger(db, group.id)
        my_balance = ZERO

        if ledger.expense_count > 0:
            balances = ledger.balances()
            me = next((m for m in members if m.user_id == user_id), None)
            if me is not None and me.id in balances:
                my_balance = balances[me.id].total

            for m in members:
                if m.user_id == user_id:
                    continue
                theirs = balances[m.id].total if m.id in balances else ZERO
                key = person_key(m)
                name, running = friends.get(key, (m.display_name, ZERO))
                friends[key] = (name, qround(running - theirs))

        if my_balance > 0:
            total_owed_to_me += my_balance
        elif my_balance < 0:
            total_i_owe += -my_balance

        group_summaries.append(
            GroupBalanceSummary(
                id=group.id,
                name=group.name,
                member_count=len(members),
                my_balance=qround(my_balance),
            )
        )

    friend_list = sorted(
        (FriendBalance(key=k, display_name=name, balance=bal) for k, (name, bal) in friends.items()),
        key=lambda f: f.display_name,
    )

    return SummaryOut(
        groups=group_summaries,
        friends=friend_list,
        total_owed_to_me=qround(total_owed_to_me),
        total_i_owe=qround(total_i_owe),
        net_balance=qround(total_owed_to_me - total_i_owe),
    )
