from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from kanban.db.base import Base


class BoardColumn(Base):
    """Колонка доски. position - ключ сортировки внутри доски"""
    
    __tablename__ = "board_columns"
    
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    color = Column(String(32), nullable=True)
    position = Column(Integer, nullable=False, default=0)
    board_id = Column(Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    board = relationship("Board", back_populates="columns")
    
    # Без каскада: колонку с карточками удалять нельзя
    cards = relationship("Card", back_populates="column", order_by="Card.position")
