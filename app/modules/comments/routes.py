from fastapi import APIRouter, Depends
from app.database.supabase_client import get_service_supabase
from app.modules.comments.schemas import CommentCreate, CommentUpdate, CommentResponse
from app.modules.comments.service import CommentService
from app.core.dependencies import get_current_user
from app.core.policy import Caller
from supabase import Client
from typing import List

router = APIRouter(tags=["comments"])


def get_comment_service(supabase: Client = Depends(get_service_supabase)) -> CommentService:
    return CommentService(supabase)


@router.get("/files/{file_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    file_id: str,
    caller: Caller = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service)
):
    """List comments on a file, oldest first"""
    return service.list_comments(caller, file_id)


@router.post("/files/{file_id}/comments", response_model=CommentResponse, status_code=201)
async def add_comment(
    file_id: str,
    comment_data: CommentCreate,
    caller: Caller = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service)
):
    """Comment on a file, optionally replying to another comment"""
    return service.add_comment(caller, file_id, comment_data)


@router.put("/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: str,
    comment_data: CommentUpdate,
    caller: Caller = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service)
):
    """Edit a comment (author only)"""
    return service.update_comment(caller, comment_id, comment_data)


@router.delete("/comments/{comment_id}", status_code=204)
async def delete_comment(
    comment_id: str,
    caller: Caller = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service)
):
    """Delete a comment (author only)"""
    service.delete_comment(caller, comment_id)
    return None
