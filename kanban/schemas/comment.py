from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from kanban.schemas.auth import UserSummary


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)


class CommentResponse(BaseModel):
    id: int
    card_id: int
    user_id: int
    content: str
    created_at: datetime
    updated_at: datetime
    user: Optional[UserSummary] = None
    
    class Config:
        from_attributes = True


class CommentList(BaseModel):
    comments: List[CommentResponse]
