from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from kanban.schemas.auth import UserSummary
from kanban.schemas.comment import CommentResponse


class CardCreate(BaseModel):
    """Schema for card creation"""
    board_id: int
    column_id: int
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=50000)
    assigned_user_id: Optional[int] = None


class CardUpdate(BaseModel):
    """Schema for card update. Position and column are changed only by a move"""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=50000)
    assigned_user_id: Optional[int] = None


class CardMove(BaseModel):
    """Schema for moving a card to a column and position"""
    column_id: int
    position: int = Field(..., ge=0)


class CardInDB(BaseModel):
    id: int
    board_id: int
    column_id: int
    title: str
    description: Optional[str] = None
    position: int
    assigned_user_id: Optional[int] = None
    creator_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True


class CardWithAssignee(CardInDB):
    assigned_user: Optional[UserSummary] = None


class CardDetailResponse(CardWithAssignee):
    """Card with its comments, newest first"""
    comments: List[CommentResponse] = []
