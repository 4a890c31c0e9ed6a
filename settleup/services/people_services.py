from collections import Counter
from typing import List, Optional
from fastapi import HTTPException
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.core.balances import get_suggested_settlements
from settleup.core.utils import ZERO, qround
from settleup.models.expense import Expense
from settleup.models.expense_share import ExpenseShare
from settleup.models.group import Group
from settleup.models.group_member import GroupMember
from settleup.schemas.people import (
    GroupRef,
    PeopleOut,
    PersonActivityItem,
    PersonDetailOut,
    PersonOut,
    PersonSettlementOut,
)
from settleup.services.group_services import get_accessible_group_ids, person_key
from settleup.services.ledger_service import fetch_ledger


async def _accessible_groups_and_members(db: AsyncSession, user_id: str, email: Optional[str]):
    ids = await get_accessible_group_ids(db, user_id, email)
    if not ids:
        return [], []

    groups_q = select(Group).where(Group.id.in_(ids)).order_by(Group.created_at.desc())
    groups = list((await db.execute(groups_q)).scalars().all())

    members_q = select(GroupMember).where(GroupMember.group_id.in_(ids)).order_by(GroupMember.joined_at, GroupMember.id)
    members = list((await db.execute(members_q)).scalars().all())

    return groups, members


async def list_people(db: AsyncSession, user_id: str, email: Optional[str] = None) -> PeopleOut:
    """
    Everyone the caller shares a group with, one entry per person.

    When a person is in several groups, a two-person group is preferred as
    their "split with" group.
    """
    groups, members = await _accessible_groups_and_members(db, user_id, email)
    group_by_id = {g.id: g for g in groups}
    member_count = Counter(m.group_id for m in members)

    people = {}
    for m in members:
        if m.user_id == user_id:
            continue

        key = person_key(m)
        count = member_count[m.group_id]
        existing = people.get(key)

        if existing is None or (count == 2 and existing.member_count > 2):
            people[key] = PersonOut(
                key=key,
                display_name=m.display_name,
                email=m.email,
                group_id=m.group_id,
                group_name=group_by_id[m.group_id].name,
                member_id=m.id,
                member_count=count,
            )

    return PeopleOut(
        people=sorted(people.values(), key=lambda p: p.display_name),
        groups=[GroupRef(id=g.id, name=g.name) for g in groups],
    )


async def _shares_for(db: AsyncSession, group_id: str, member_ids: List[str]):
    q = (
        select(
            ExpenseShare.expense_id,
            ExpenseShare.member_id,
            func.sum(ExpenseShare.amount).label("amount"),
        )
        .join(Expense, Expense.id == ExpenseShare.expense_id)
        .where(
            Expense.group_id == group_id,
            Expense.is_deleted == False,
            ExpenseShare.member_id.in_(member_ids),
        )
        .group_by(ExpenseShare.expense_id, ExpenseShare.member_id)
    )
    rows = (await db.execute(q)).all()
    return {(r.expense_id, r.member_id): qround(r.amount) for r in rows}


async def get_person_detail(
    db: AsyncSession,
    user_id: str,
    key: str,
    email: Optional[str] = None,
) -> PersonDetailOut:
    """
    Caller's position with one person across every shared group.

    balance      : positive when the person owes the caller
    settlements  : current suggestions between the two of them
    activity     : shared expenses with their effect on that balance
    """
    groups, members = await _accessible_groups_and_members(db, user_id, email)

    theirs = [
        m for m in members
        if m.user_id != user_id
        and (m.user_id == key or m.email == key or f"{m.group_id}-{m.id}" == key)
    ]
    if not theirs:
        raise HTTPException(404, "Person not found")

    group_names = {g.id: g.name for g in groups}
    balance = ZERO
    settlements = []
    activity = []

    for them in theirs:
        group_id = them.group_id
        me = next((m for m in members if m.group_id == group_id and m.user_id == user_id), None)
        if me is None:
            continue

        ledger = await fetch_ledger(db, group_id)
        if ledger.expense_count == 0:
            continue

        balances = ledger.balances()
        their_total = balances[them.id].total if them.id in balances else ZERO
        balance += qround(-their_total)

        pair = {me.id, them.id}
        settlements += [
            PersonSettlementOut(
                group_id=group_id,
                from_member_id=s.from_member_id,
                to_member_id=s.to_member_id,
                amount=s.amount,
            )
            for s in get_suggested_settlements(balances)
            if {s.from_member_id, s.to_member_id} == pair
        ]

        shares = await _shares_for(db, group_id, [me.id, them.id])
        expenses_q = select(Expense).where(Expense.group_id == group_id, Expense.is_deleted == False)

        for expense in (await db.execute(expenses_q)).scalars().all():
            my_share = shares.get((expense.id, me.id), ZERO)
            their_share = shares.get((expense.id, them.id), ZERO)
            paid_by_me = expense.paid_by == me.id
            paid_by_them = expense.paid_by == them.id

            # I paid: they owe me their share. They paid: I owe them mine.
            effect = ZERO
            if paid_by_me and their_share > 0:
                effect = their_share
            elif paid_by_them and my_share > 0:
                effect = -my_share

            activity.append(
                PersonActivityItem(
                    id=expense.id,
                    title=expense.title,
                    amount=qround(abs(expense.amount)),
                    group_id=group_id,
                    group_name=group_names.get(group_id, ""),
                    paid_by_me=paid_by_me,
                    paid_by_them=paid_by_them,
                    my_share=my_share,
                    their_share=their_share,
                    effect_on_balance=effect,
                    created_at=expense.created_at,
                )
            )

    activity.sort(key=lambda a: (a.created_at is not None, a.created_at, a.id), reverse=True)

    return PersonDetailOut(
        key=key,
        display_name=theirs[0].display_name,
        email=theirs[0].email,
        balance=qround(balance),
        activity=activity,
        settlements=settlements,
    )
