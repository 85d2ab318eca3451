from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from sqlalchemy.orm import selectinload

from kanban.models.card import Card, Comment
from kanban.services.event_service import notify_comment_added, notify_comment_deleted
from kanban.logs import debug_logger


class CommentService:
    """Comments on cards"""

    @staticmethod
    async def create(
        db: AsyncSession,
        card: Card,
        user_id: int,
        content: str
    ) -> Comment:
        comment = Comment(
            content=content,
            card_id=card.id,
            user_id=user_id
        )
        db.add(comment)
        await db.commit()

        comment = await CommentService.get_by_id(db, comment.id)
        debug_logger.debug(f"Пользователь {user_id} добавил комментарий {comment.id} к карточке {card.id}")

        await notify_comment_added(card.board_id, card.id, {
            "id": comment.id,
            "content": comment.content,
            "user_id": comment.user_id,
            "created_at": comment.created_at.isoformat() if comment.created_at else None,
        })
        return comment

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        comment_id: int
    ) -> Optional[Comment]:
        """Comment with its author and card"""
        query = select(Comment).where(Comment.id == comment_id).options(
            selectinload(Comment.user),
            selectinload(Comment.card),
        ).execution_options(populate_existing=True)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_by_card_id(
        db: AsyncSession,
        card_id: int
    ) -> List[Comment]:
        """Comments of a card, newest first"""
        query = select(Comment).where(
            Comment.card_id == card_id
        ).options(selectinload(Comment.user)).order_by(Comment.created_at.desc(), Comment.id.desc())
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def delete(
        db: AsyncSession,
        comment: Comment
    ) -> bool:
        comment_id, card_id = comment.id, comment.card_id
        board_id = comment.card.board_id
        stmt = delete(Comment).where(Comment.id == comment_id)
        result = await db.execute(stmt)
        await db.commit()

        deleted = result.rowcount > 0
        if deleted:
            await notify_comment_deleted(board_id, card_id, comment_id)
        return deleted
