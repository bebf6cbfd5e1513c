from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import datetime

Role = Literal["user", "moderator", "admin"]


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    role: Optional[Role] = None


class ProfileResponse(BaseModel):
    id: str
    email: str
    full_name: str
    role: Role
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
