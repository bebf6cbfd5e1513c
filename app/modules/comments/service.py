from supabase import Client
from app.core.errors import ValidationFailedError
from app.core.policy import Caller, PolicyEngine
from app.database.resource_store import ResourceStore, utcnow_iso
from app.modules.comments.schemas import CommentCreate, CommentUpdate, CommentResponse
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)


def clean_comment(text: str) -> str:
    text = (text or "").strip()
    if not text:
        raise ValidationFailedError("Comment cannot be empty")
    return text


class CommentService:
    def __init__(self, supabase: Client, policy: Optional[PolicyEngine] = None):
        self.files = ResourceStore(supabase, "job_files", policy)
        self.comments = ResourceStore(supabase, "file_comments", policy)

    def list_comments(self, caller: Caller, file_id: str) -> List[CommentResponse]:
        """Comments on a file, oldest first"""
        self.files.get(caller, file_id)
        rows = self.comments.select(caller, eq={"file_id": file_id}, desc=False)
        return [CommentResponse(**row) for row in rows]

    def add_comment(self, caller: Caller, file_id: str, comment_data: CommentCreate) -> CommentResponse:
        self.files.get(caller, file_id)
        text = clean_comment(comment_data.comment)
        if comment_data.parent_id:
            parent = self.comments.find(caller, comment_data.parent_id)
            if parent is None or parent["file_id"] != file_id:
                raise ValidationFailedError("Parent comment must belong to the same file")
        row = self.comments.insert(caller, {
            "file_id": file_id,
            "comment": text,
            "parent_id": comment_data.parent_id,
        })
        logger.info(f"Comment {row['id']} added to file {file_id} by {caller.id}")
        return CommentResponse(**row)

    def update_comment(self, caller: Caller, comment_id: str, comment_data: CommentUpdate) -> CommentResponse:
        """Edit comment text (author only)"""
        row = self.comments.update(
            caller, comment_id, {"comment": clean_comment(comment_data.comment)},
            extra={"updated_at": utcnow_iso()}
        )
        return CommentResponse(**row)

    def delete_comment(self, caller: Caller, comment_id: str) -> None:
        """Delete comment (author only); replies stay, detached from it"""
        self.comments.delete(caller, comment_id)
        logger.info(f"Comment {comment_id} deleted by {caller.id}")
