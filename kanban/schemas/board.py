from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from kanban.models.board import BoardStatus
from kanban.schemas.auth import UserSummary
from kanban.schemas.card import CardWithAssignee
from kanban.schemas.column import ColumnInput, ColumnResponse


class BoardCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)


class BoardUpdate(BaseModel):
    """Schema for board update.

    When ``columns`` is present the whole column set is reconciled against it:
    omitted columns are deleted, entries without id are created.
    """
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    status: BoardStatus
    columns: Optional[List[ColumnInput]] = Field(None, min_length=1)


class BoardStatusUpdate(BaseModel):
    status: BoardStatus


class BoardInDB(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    status: BoardStatus
    owner_id: int
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True


class BoardResponse(BoardInDB):
    pass


class BoardSummary(BoardInDB):
    """Board in the index listing"""
    is_owner: bool
    columns: List[ColumnResponse] = []


class BoardList(BaseModel):
    boards: List[BoardSummary]
    status: BoardStatus
    total: int = 0


class ColumnWithCards(ColumnResponse):
    cards: List[CardWithAssignee] = []


class BoardCompleteResponse(BoardInDB):
    """Board with ordered columns, their cards and everyone who has access"""
    is_owner: bool
    columns: List[ColumnWithCards] = []
    board_users: List[UserSummary] = []
