from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
import enum

from kanban.db.base import Base


class BoardStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class Board(Base):
    """Канбан-доска. Владелец один, остальные участники получают доступ через BoardShare"""
    
    __tablename__ = "boards"
    
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)
    status = Column(
        Enum(BoardStatus, values_callable=lambda statuses: [s.value for s in statuses]),
        nullable=False,
        default=BoardStatus.ACTIVE,
    )
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    owner = relationship("User", backref="owned_boards", foreign_keys=[owner_id])
    
    # Колонки всегда отдаются в порядке position
    columns = relationship(
        "BoardColumn",
        back_populates="board",
        order_by="BoardColumn.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    
    cards = relationship("Card", back_populates="board", cascade="all, delete-orphan", passive_deletes=True)
    
    shares = relationship("BoardShare", back_populates="board", cascade="all, delete-orphan", passive_deletes=True)
    
    # Пользователи, с которыми доска расшарена (без владельца)
    shared_with = relationship("User", secondary="board_shares", viewonly=True)
    
    @property
    def shared_user_ids(self) -> set:
        return {share.user_id for share in self.shares}


class BoardShare(Base):
    """Доступ к доске для пользователя, не являющегося владельцем"""
    
    __tablename__ = "board_shares"
    __table_args__ = (
        UniqueConstraint("board_id", "user_id", name="uq_board_shares_board_user"),
    )
    
    id = Column(Integer, primary_key=True, index=True)
    board_id = Column(Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    board = relationship("Board", back_populates="shares")
    user = relationship("User", backref="board_shares")
