from fastapi import HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from settleup.core.security import decode_token, get_bearer_token
from settleup.models.group import Group
from settleup.models.group_member import GroupMember
from settleup.schemas.user import AuthUser

async def get_current_user(request: Request) -> AuthUser:
    token = get_bearer_token(request=request)
    payload = await decode_token(token)
    user_id = payload.get("sub")

    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials")

    return AuthUser(id=str(user_id), email=payload.get("email"))

async def can_access_group(db: AsyncSession, user_id: str, group_id: str) -> bool:
    group = await db.get(Group, group_id)
    if not group:
        return False
    if group.owner_id == user_id:
        return True

    q_member = select(GroupMember.id).where(
        GroupMember.group_id == group_id,
        GroupMember.user_id == user_id
    )
    member = (await db.execute(q_member)).first()
    return member is not None

async def get_accessible_group(db: AsyncSession, group_id: str, user_id: str) -> Group:
    # non-members get 404, not 403
    if not await can_access_group(db, user_id, group_id):
        raise HTTPException(404, "Group not found")
    return await db.get(Group, group_id)

async def get_owned_group(db: AsyncSession, group_id: str, user_id: str) -> Group:
    group = await db.get(Group, group_id)
    if not group or group.owner_id != user_id:
        raise HTTPException(404, "Group not found")
    return group

async def get_group_member(db: AsyncSession, group_id: str, member_id: str) -> GroupMember:
    q = select(GroupMember).where(
        GroupMember.id == member_id,
        GroupMember.group_id == group_id
    )
    member = (await db.execute(q)).scalar_one_or_none()
    if not member:
        raise HTTPException(400, "Member is not part of this group")
    return member
