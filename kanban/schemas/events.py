from pydantic import BaseModel
from typing import Dict, Any
from enum import Enum


class EventType(str, Enum):
    """Types of domain events emitted by the services"""
    BOARD_UPDATED = "board_updated"
    BOARD_DELETED = "board_deleted"
    COLUMNS_REORDERED = "columns_reordered"
    CARD_CREATED = "card_created"
    CARD_UPDATED = "card_updated"
    CARD_MOVED = "card_moved"
    CARD_DELETED = "card_deleted"
    BOARD_SHARED = "board_shared"
    SHARE_REMOVED = "share_removed"
    COMMENT_ADDED = "comment_added"
    COMMENT_DELETED = "comment_deleted"


class DomainEvent(BaseModel):
    """Event announced after a mutation has been committed"""
    event: EventType
    data: Dict[str, Any]
