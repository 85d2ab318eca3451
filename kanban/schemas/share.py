from datetime import datetime
from typing import List
from pydantic import BaseModel

from kanban.schemas.auth import UserSummary


class ShareCreate(BaseModel):
    user_id: int


class ShareResponse(BaseModel):
    id: int
    board_id: int
    user_id: int
    created_at: datetime
    user: UserSummary
    
    class Config:
        from_attributes = True


class ShareList(BaseModel):
    shares: List[ShareResponse]
