from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class JobFileResponse(BaseModel):
    id: str
    job_id: str
    file_name: str
    file_type: str
    file_size: int
    file_path: str
    is_presentation: bool = False
    uploaded_by: str
    created_at: datetime

    class Config:
        from_attributes = True


class PresentationUpdate(BaseModel):
    is_presentation: Optional[bool] = None  # None toggles the current value


class FileUploadFailure(BaseModel):
    file_name: str
    detail: str


class JobFileUploadResponse(BaseModel):
    job_id: str
    uploaded: List[JobFileResponse]
    failed: List[FileUploadFailure]
    message: str
