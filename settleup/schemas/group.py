from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional

class GroupCreate(BaseModel):
    name: str = Field(min_length=1)
    owner_display_name: str = "You"

class GroupOut(BaseModel):
    id: str
    name: str
    owner_id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class GroupListItem(GroupOut):
    member_count: int

class GroupMemberCreate(BaseModel):
    display_name: str = Field(min_length=1)
    email: Optional[EmailStr] = None
    user_id: Optional[str] = None

class GroupMemberOut(BaseModel):
    id: str
    group_id: str
    user_id: Optional[str] = None
    display_name: str
    email: Optional[str] = None

    class Config:
        from_attributes = True
