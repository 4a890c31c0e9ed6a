from pydantic import BaseModel
from decimal import Decimal
from typing import List, Optional
from settleup.schemas.expense import ActivityItem
from settleup.schemas.group import GroupMemberOut, GroupOut

class MemberBalanceOut(BaseModel):
    member_id: str
    paid: Decimal
    owed: Decimal
    total: Decimal

    class Config:
        from_attributes = True

class SuggestionOut(BaseModel):
    from_member_id: str
    to_member_id: str
    amount: Decimal
    from_member: Optional[GroupMemberOut] = None
    to_member: Optional[GroupMemberOut] = None

class GroupDetailOut(BaseModel):
    group: GroupOut
    is_owner: bool
    members: List[GroupMemberOut]
    activity: List[ActivityItem]
    balances: List[MemberBalanceOut]
    suggestions: List[SuggestionOut]
    total_spend: Decimal

class GroupBalanceSummary(BaseModel):
    id: str
    name: str
    member_count: int
    my_balance: Decimal

class FriendBalance(BaseModel):
    key: str
    display_name: str
    balance: Decimal

class SummaryOut(BaseModel):
    groups: List[GroupBalanceSummary]
    friends: List[FriendBalance]
    total_owed_to_me: Decimal
    total_i_owe: Decimal
    net_balance: Decimal
