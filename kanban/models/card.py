from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from kanban.db.base import Base


class Card(Base):
    """Карточка. position плотный внутри колонки, начиная с 0"""
    
    __tablename__ = "cards"
    
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    position = Column(Integer, nullable=False, default=0)
    board_id = Column(Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    # NO ACTION: удаление занятой колонки блокируется на уровне БД
    column_id = Column(Integer, ForeignKey("board_columns.id"), nullable=False, index=True)
    assigned_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    creator_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    board = relationship("Board", back_populates="cards")
    column = relationship("BoardColumn", back_populates="cards")
    assigned_user = relationship("User", foreign_keys=[assigned_user_id], backref="assigned_cards")
    creator = relationship("User", foreign_keys=[creator_id])
    
    comments = relationship(
        "Comment",
        back_populates="card",
        order_by="Comment.created_at.desc()",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Comment(Base):
    """Комментарий к карточке"""
    
    __tablename__ = "comments"
    
    id = Column(Integer, primary_key=True, index=True)
    content = Column(Text, nullable=False)
    card_id = Column(Integer, ForeignKey("cards.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    card = relationship("Card", back_populates="comments")
    user = relationship("User", backref="comments")
