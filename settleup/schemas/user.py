from pydantic import BaseModel
from typing import Optional

class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None
