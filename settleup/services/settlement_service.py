import asyncio
import logging
import weakref
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from fastapi import HTTPException
from settleup.core.dependencies import get_accessible_group, get_group_member, get_owned_group
from settleup.core.guard import MaxSettlement, clamp_settlement_amount, max_settlement_allowed
from settleup.models.group import Group
from settleup.models.group_member import GroupMember
from settleup.models.settlement import SETTLEMENT_METHODS, Settlement
from settleup.schemas.settlements import SettlementCreate
from settleup.services.ledger_service import fetch_ledger

logger = logging.getLogger(__name__)

# one writer per group inside this process; the row lock below covers other workers.
# Entries live only while some caller holds or waits on the lock.
_group_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()


def _group_lock(group_id: str) -> asyncio.Lock:
    lock = _group_locks.get(group_id)
    if lock is None:
        lock = asyncio.Lock()
        _group_locks[group_id] = lock
    return lock


async def get_max_settlement_allowed(
    db: AsyncSession,
    group_id: str,
    payer_member_id: str,
    receiver_member_id: str,
) -> MaxSettlement:
    ledger = await fetch_ledger(db, group_id)
    return max_settlement_allowed(ledger, payer_member_id, receiver_member_id)


async def record_settlement(
    db: AsyncSession,
    group_id: str,
    user_id: str,
    data: SettlementCreate,
) -> Settlement:
    await get_accessible_group(db, group_id, user_id)

    if data.payer_member_id == data.receiver_member_id:
        raise HTTPException(400, "Payer and receiver must be different members")

    await get_group_member(db, group_id, data.payer_member_id)
    await get_group_member(db, group_id, data.receiver_member_id)

    method = data.method if data.method in SETTLEMENT_METHODS else "manual"

    lock = _group_lock(group_id)
    async with lock:
        # guard and insert run in one transaction under the group row lock
        await db.execute(
            select(Group.id).where(Group.id == group_id).with_for_update()
        )

        guard = await get_max_settlement_allowed(
            db, group_id, data.payer_member_id, data.receiver_member_id
        )

        if not guard.allowed or guard.max_amount <= 0:
            logger.info(
                "Settlement rejected | group=%s payer=%s receiver=%s reason=%s",
                group_id, data.payer_member_id, data.receiver_member_id, guard.reason,
            )
            raise HTTPException(
                400, guard.reason or "Nothing left to settle between these members"
            )

        amount = clamp_settlement_amount(data.amount, guard)

        settlement = Settlement(
            group_id=group_id,
            payer_member_id=data.payer_member_id,
            receiver_member_id=data.receiver_member_id,
            amount=amount,
            method=method,
            status="completed",
        )

        db.add(settlement)
        await db.commit()

    await db.refresh(settlement)

    logger.info(
        "Settlement recorded | group=%s payer=%s receiver=%s amount=%s requested=%s",
        group_id, data.payer_member_id, data.receiver_member_id, amount, data.amount,
    )
    return settlement


async def get_settlement_history(db: AsyncSession, group_id: str, user_id: str):
    await get_accessible_group(db, group_id, user_id)

    q = select(Settlement).where(
        Settlement.group_id == group_id
    ).order_by(Settlement.created_at.desc())

    result = await db.execute(q)
    return result.scalars().all()


async def undo_settlement(db: AsyncSession, settlement_id: str, user_id: str):
    settlement = await db.get(Settlement, settlement_id)

    if not settlement:
        raise HTTPException(404, "Settlement entry not found")

    group = await db.get(Group, settlement.group_id)
    payer = await db.get(GroupMember, settlement.payer_member_id)

    # Only the owner or the user who made the payment can undo it
    if group.owner_id != user_id and (payer is None or payer.user_id != user_id):
        raise HTTPException(403, "You are not allowed to undo this settlement")

    await db.delete(settlement)
    await db.commit()

    logger.info("Settlement undone | group=%s settlement=%s", group.id, settlement_id)
    return {"status": "undo successful"}


async def clear_settlements(db: AsyncSession, group_id: str, user_id: str):
    await get_owned_group(db, group_id, user_id)

    result = await db.execute(
        delete(Settlement).where(Settlement.group_id == group_id)
    )
    await db.commit()

    logger.warning("Settlements cleared | group=%s count=%s", group_id, result.rowcount)
    return {"ok": True, "deleted": result.rowcount}
