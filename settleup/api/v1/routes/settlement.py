from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.db.session import get_db
from settleup.core.dependencies import get_accessible_group, get_current_user
from settleup.schemas.settlements import MaxSettlementOut, SettlementCreate, SettlementOut
from settleup.schemas.user import AuthUser
from settleup.services.settlement_service import (
    clear_settlements,
    get_max_settlement_allowed,
    get_settlement_history,
    record_settlement,
    undo_settlement,
)

router = APIRouter()


@router.post("/{group_id}", response_model=SettlementOut)
async def mark_paid(
    group_id: str,
    data: SettlementCreate,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(get_current_user),
):
    return await record_settlement(db, group_id, user.id, data)


@router.get("/{group_id}/max", response_model=MaxSettlementOut)
async def max_allowed(
    group_id: str,
    payer_member_id: str,
    receiver_member_id: str,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(get_current_user),
):
    await get_accessible_group(db, group_id, user.id)
    return await get_max_settlement_allowed(db, group_id, payer_member_id, receiver_member_id)


@router.get("/{group_id}", response_model=list[SettlementOut])
async def history(
    group_id: str,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(get_current_user),
):
    return await get_settlement_history(db, group_id, user.id)


@router.delete("/{group_id}")
async def clear(
    group_id: str,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(get_current_user),
):
    return await clear_settlements(db, group_id, user.id)


@router.delete("/entry/{settlement_id}")
async def undo(
    settlement_id: str,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(get_current_user),
):
    return await undo_settlement(db, settlement_id, user.id)
