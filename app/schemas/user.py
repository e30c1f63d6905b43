from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

class UserOut(BaseModel):
    id: int
    email: str
    is_active: bool
    email_verified: bool
    roles: List[str] = []
    last_login: Optional[datetime] = None

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
