from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class FileVersionResponse(BaseModel):
    id: str
    file_id: str
    version_number: int
    file_path: str
    file_size: int
    changelog: Optional[str] = None
    created_by: str
    created_at: datetime

    class Config:
        from_attributes = True
