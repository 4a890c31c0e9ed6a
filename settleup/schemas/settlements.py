from pydantic import BaseModel, condecimal
from datetime import datetime
from decimal import Decimal
from typing import Optional

class SettlementCreate(BaseModel):
    payer_member_id: str
    receiver_member_id: str
    amount: condecimal(gt=0)
    method: str = "manual"

class SettlementOut(BaseModel):
    id: str
    group_id: str
    payer_member_id: str
    receiver_member_id: str
    amount: Decimal
    method: str
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class MaxSettlementOut(BaseModel):
    max_amount: Decimal
    allowed: bool
    reason: Optional[str] = None

    class Config:
        from_attributes = True
