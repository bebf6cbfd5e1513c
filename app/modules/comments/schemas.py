from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class CommentCreate(BaseModel):
    comment: str = Field(..., max_length=5000)
    parent_id: Optional[str] = None


class CommentUpdate(BaseModel):
    comment: str = Field(..., max_length=5000)


class CommentResponse(BaseModel):
    id: str
    file_id: str
    user_id: str
    comment: str
    parent_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
