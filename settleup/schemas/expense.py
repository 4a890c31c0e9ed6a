from pydantic import BaseModel, condecimal
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

Money = condecimal(gt=0, max_digits=12, decimal_places=2)

class ShareInput(BaseModel):
    member_id: str
    amount: Money

class ExpenseCreate(BaseModel):
    title: str
    amount: Money
    paid_by: str
    shares: List[ShareInput]

class ExpenseOut(BaseModel):
    id: str
    group_id: str
    title: str
    amount: Decimal
    paid_by: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ActivityItem(BaseModel):
    id: str
    title: str
    amount: Decimal
    paid_by: str
    split_count: int
    created_at: Optional[datetime] = None
