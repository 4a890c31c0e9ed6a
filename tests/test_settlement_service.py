import asyncio
import gc
from decimal import Decimal

import pytest
from fastapi import HTTPException
from sqlalchemy import func, select

from settleup.core.guard import ALREADY_SETTLED, NO_EXPENSES, NOTHING_BETWEEN_MEMBERS
from settleup.db.session import async_session
from settleup.models.expense_share import ExpenseShare
from settleup.models.settlement import Settlement
from settleup.schemas.expense import ExpenseCreate, ShareInput
from settleup.schemas.settlements import SettlementCreate
from settleup.services.expense_services import create_expense, delete_expense
from settleup.services.ledger_service import fetch_ledger
from settleup.services import settlement_service
from settleup.services.settlement_service import (
    clear_settlements,
    get_max_settlement_allowed,
    get_settlement_history,
    record_settlement,
    undo_settlement,
)


async def dinner(db, group, members, amount="90.00"):
    """Alice pays, split three ways."""
    share = str(Decimal(amount) / 3)
    return await create_expense(
        db,
        ExpenseCreate(
            title="Dinner",
            amount=amount,
            paid_by=members["Alice"].id,
            shares=[ShareInput(member_id=m.id, amount=share) for m in members.values()],
        ),
        "user-alice",
        group.id,
    )


def bob_pays_alice(members, amount="30.00", method="manual"):
    return SettlementCreate(
        payer_member_id=members["Bob"].id,
        receiver_member_id=members["Alice"].id,
        amount=amount,
        method=method,
    )


async def settlement_count(db, group_id):
    q = select(func.count(Settlement.id)).where(Settlement.group_id == group_id)
    return (await db.execute(q)).scalar()


async def test_ledger_reads_paid_owed_and_settlements(db, trio):
    group, members = trio
    await dinner(db, group, members)

    ledger = await fetch_ledger(db, group.id)
    balances = ledger.balances()

    assert ledger.expense_count == 1
    assert balances[members["Alice"].id].total == Decimal("60.00")
    assert balances[members["Bob"].id].total == Decimal("-30.00")
    assert balances[members["Carol"].id].total == Decimal("-30.00")


async def test_ledger_merges_duplicate_shares(db, trio):
    group, members = trio
    expense = await dinner(db, group, members)
    db.add(ExpenseShare(expense_id=expense.id, member_id=members["Bob"].id, amount=Decimal("5.00")))
    await db.commit()

    ledger = await fetch_ledger(db, group.id)
    bob_rows = [r for r in ledger.owed_rows if r.member_id == members["Bob"].id]

    assert len(bob_rows) == 1
    assert Decimal(str(bob_rows[0].amount)) == Decimal("35.00")


async def test_deleted_expenses_leave_the_ledger(db, trio):
    group, members = trio
    expense = await dinner(db, group, members)

    await delete_expense(db, "user-alice", expense.id)
    ledger = await fetch_ledger(db, group.id)

    assert ledger.expense_count == 0
    assert ledger.balances() == {}


async def test_guard_allows_open_pair(db, trio):
    group, members = trio
    await dinner(db, group, members)

    result = await get_max_settlement_allowed(db, group.id, members["Bob"].id, members["Alice"].id)

    assert result.allowed is True
    assert result.max_amount == Decimal("30.00")


async def test_guard_on_empty_group(db, trio):
    group, members = trio

    result = await get_max_settlement_allowed(db, group.id, members["Bob"].id, members["Alice"].id)

    assert result.allowed is False
    assert result.reason == NO_EXPENSES


async def test_record_clamps_to_what_is_owed(db, trio):
    group, members = trio
    await dinner(db, group, members)

    settlement = await record_settlement(db, group.id, "user-bob", bob_pays_alice(members, "100", method="venmo"))

    assert settlement.amount == Decimal("30.00")
    assert settlement.status == "completed"
    assert settlement.method == "manual"


async def test_second_mark_paid_is_rejected(db, trio):
    group, members = trio
    await dinner(db, group, members)

    await record_settlement(db, group.id, "user-bob", bob_pays_alice(members))

    with pytest.raises(HTTPException) as exc:
        await record_settlement(db, group.id, "user-bob", bob_pays_alice(members))

    assert exc.value.status_code == 400
    assert exc.value.detail == NOTHING_BETWEEN_MEMBERS
    assert await settlement_count(db, group.id) == 1
    # the session stays usable: loaded rows are not expired by the rejection
    assert members["Bob"].display_name == "Bob"
    assert group.name == "Cabin trip"


async def test_partial_payment_lowers_the_cap(db, trio):
    group, members = trio
    await dinner(db, group, members)

    # Bob -20 after paying 10: the open 20 minus the 10 already on record
    await record_settlement(db, group.id, "user-bob", bob_pays_alice(members, "10.00"))
    result = await get_max_settlement_allowed(db, group.id, members["Bob"].id, members["Alice"].id)

    assert result.allowed is True
    assert result.max_amount == Decimal("10.00")

    await record_settlement(db, group.id, "user-bob", bob_pays_alice(members, "25.00"))
    result = await get_max_settlement_allowed(db, group.id, members["Bob"].id, members["Alice"].id)

    assert result.allowed is False
    assert result.reason == ALREADY_SETTLED


async def test_concurrent_mark_paid_writes_once(db, trio):
    group, members = trio
    await dinner(db, group, members)

    async def mark_paid():
        async with async_session() as session:
            return await record_settlement(session, group.id, "user-bob", bob_pays_alice(members))

    results = await asyncio.gather(mark_paid(), mark_paid(), return_exceptions=True)

    recorded = [r for r in results if isinstance(r, Settlement)]
    rejected = [r for r in results if isinstance(r, HTTPException)]

    assert len(recorded) == 1
    assert len(rejected) == 1
    assert rejected[0].status_code == 400
    assert await settlement_count(db, group.id) == 1


async def test_group_lock_is_released_after_use(db, trio):
    group, members = trio
    await dinner(db, group, members)

    await record_settlement(db, group.id, "user-bob", bob_pays_alice(members))
    gc.collect()

    assert group.id not in settlement_service._group_locks


async def test_record_rejects_self_payment(db, trio):
    group, members = trio
    await dinner(db, group, members)
    data = SettlementCreate(
        payer_member_id=members["Bob"].id,
        receiver_member_id=members["Bob"].id,
        amount="5",
    )

    with pytest.raises(HTTPException) as exc:
        await record_settlement(db, group.id, "user-bob", data)

    assert exc.value.status_code == 400


async def test_record_requires_access(db, trio):
    group, members = trio
    await dinner(db, group, members)

    with pytest.raises(HTTPException) as exc:
        await record_settlement(db, group.id, "user-mallory", bob_pays_alice(members))

    assert exc.value.status_code == 404


async def test_history_and_undo(db, trio):
    group, members = trio
    await dinner(db, group, members)
    settlement = await record_settlement(db, group.id, "user-bob", bob_pays_alice(members))

    history = await get_settlement_history(db, group.id, "user-alice")
    assert [s.id for s in history] == [settlement.id]

    with pytest.raises(HTTPException) as exc:
        await undo_settlement(db, settlement.id, "user-stranger")
    assert exc.value.status_code == 403

    assert await undo_settlement(db, settlement.id, "user-bob") == {"status": "undo successful"}
    assert await settlement_count(db, group.id) == 0

    with pytest.raises(HTTPException) as exc:
        await undo_settlement(db, settlement.id, "user-bob")
    assert exc.value.status_code == 404


async def test_clear_settlements_is_owner_only(db, trio):
    group, members = trio
    await dinner(db, group, members)
    await record_settlement(db, group.id, "user-bob", bob_pays_alice(members))

    with pytest.raises(HTTPException) as exc:
        await clear_settlements(db, group.id, "user-bob")
    assert exc.value.status_code == 404

    result = await clear_settlements(db, group.id, "user-alice")

    assert result == {"ok": True, "deleted": 1}
    assert await settlement_count(db, group.id) == 0
