from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

class PersonOut(BaseModel):
    key: str
    display_name: str
    email: Optional[str] = None
    group_id: str
    group_name: str
    member_id: str
    member_count: int

class GroupRef(BaseModel):
    id: str
    name: str

class PeopleOut(BaseModel):
    people: List[PersonOut]
    groups: List[GroupRef]

class PersonActivityItem(BaseModel):
    id: str
    title: str
    amount: Decimal
    group_id: str
    group_name: str
    paid_by_me: bool
    paid_by_them: bool
    my_share: Decimal
    their_share: Decimal
    effect_on_balance: Decimal
    created_at: Optional[datetime] = None

class PersonSettlementOut(BaseModel):
    group_id: str
    from_member_id: str
    to_member_id: str
    amount: Decimal

class PersonDetailOut(BaseModel):
    key: str
    display_name: str
    email: Optional[str] = None
    balance: Decimal
    activity: List[PersonActivityItem]
    settlements: List[PersonSettlementOut]
