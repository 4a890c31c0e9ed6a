from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.db.session import get_db
from settleup.schemas.expense import ExpenseCreate, ExpenseOut
from settleup.schemas.user import AuthUser
from settleup.services.expense_services import create_expense, delete_expense, get_expenses_by_group
from settleup.core.dependencies import get_current_user

router = APIRouter()

@router.post("/{group_id}/add", response_model=ExpenseOut)
async def add_expense(group_id: str, data: ExpenseCreate, db: AsyncSession = Depends(get_db), user: AuthUser = Depends(get_current_user)):
    return await create_expense(db, data, user.id, group_id)

@router.get("/{group_id}/all", response_model=list[ExpenseOut])
async def all_expenses(group_id: str, db: AsyncSession = Depends(get_db), user: AuthUser = Depends(get_current_user)):
    return await get_expenses_by_group(db, group_id, user.id)

@router.delete("/{expense_id}")
async def del_expense(expense_id: str, db: AsyncSession = Depends(get_db), user: AuthUser = Depends(get_current_user)):
    return await delete_expense(db, user_id=user.id, expense_id=expense_id)
