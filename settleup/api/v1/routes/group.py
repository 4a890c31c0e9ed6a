from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.db.session import get_db
from settleup.services.group_services import (
    create_group,
    add_member,
    list_group_for_user,
    get_group_detail,
    get_summary,
)
from settleup.services.people_services import list_people, get_person_detail
from settleup.schemas.balances import GroupDetailOut, SummaryOut
from settleup.schemas.people import PeopleOut, PersonDetailOut
from settleup.schemas.group import GroupCreate, GroupListItem, GroupMemberCreate, GroupMemberOut, GroupOut
from settleup.schemas.user import AuthUser
from settleup.core.dependencies import get_current_user

router = APIRouter()

@router.post("/", response_model=GroupOut)
async def create_new_group(
    data: GroupCreate,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(get_current_user)
):
    return await create_group(db, data.name, user.id, data.owner_display_name)

@router.get("/", response_model=list[GroupListItem])
async def my_groups(db: AsyncSession = Depends(get_db), user: AuthUser = Depends(get_current_user)):
    return await list_group_for_user(db, user.id, user.email)

@router.get("/summary", response_model=SummaryOut)
async def summary(db: AsyncSession = Depends(get_db), user: AuthUser = Depends(get_current_user)):
    return await get_summary(db, user.id, user.email)

@router.get("/people", response_model=PeopleOut)
async def people(db: AsyncSession = Depends(get_db), user: AuthUser = Depends(get_current_user)):
    return await list_people(db, user.id, user.email)

@router.get("/person", response_model=PersonDetailOut)
async def person_detail(key: str, db: AsyncSession = Depends(get_db), user: AuthUser = Depends(get_current_user)):
    return await get_person_detail(db, user.id, key, user.email)

@router.get("/{group_id}", response_model=GroupDetailOut)
async def group_detail(group_id: str, db: AsyncSession = Depends(get_db), user: AuthUser = Depends(get_current_user)):
    return await get_group_detail(db, group_id, user.id)

@router.post("/{group_id}/members", response_model=GroupMemberOut)
async def add_group_member(
    group_id: str,
    data: GroupMemberCreate,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(get_current_user)
):
    return await add_member(db, group_id, user.id, data)
