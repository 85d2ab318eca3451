from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class ColumnInput(BaseModel):
    """Requested column in a board update. Without id a new column is created"""
    id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=255)
    position: int = Field(..., ge=0)
    color: Optional[str] = Field(None, max_length=32)


class ColumnInDB(BaseModel):
    id: int
    board_id: int
    name: str
    color: Optional[str] = None
    position: int
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True


class ColumnResponse(ColumnInDB):
    pass


class ColumnList(BaseModel):
    columns: List[ColumnResponse]


class ColumnPosition(BaseModel):
    id: int
    position: int = Field(..., ge=0)


class ColumnReorder(BaseModel):
    """Schema for the lightweight reorder endpoint"""
    columns: List[ColumnPosition] = Field(..., min_length=1)


class ColumnCompactResult(BaseModel):
    column_id: int
    renumbered: int
