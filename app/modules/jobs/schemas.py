from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import datetime

Priority = Literal["low", "medium", "high"]
Status = Literal["pending", "in-progress", "completed"]


class JobCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    client_name: Optional[str] = None
    thumbnail: Optional[str] = None
    priority: Priority = "medium"
    status: Status = "pending"


class JobUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    client_name: Optional[str] = None
    thumbnail: Optional[str] = None
    priority: Optional[Priority] = None
    status: Optional[Status] = None


class JobResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    client_name: Optional[str] = None
    thumbnail: Optional[str] = None
    priority: Priority
    status: Status
    created_by: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
