from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from kanban.core import get_settings
from kanban.core.exceptions import InvalidState, NotFound
from kanban.models.board import Board, BoardShare
from kanban.models.user import User
from kanban.services.user_service import UserService
from kanban.services.event_service import notify_board_shared, notify_share_removed
from kanban.logs import debug_logger, log_function

settings = get_settings()

OWNER_SHARE_MESSAGE = "Cannot share board with the owner"
DUPLICATE_SHARE_MESSAGE = "Board is already shared with this user"


class ShareService:
    """Board shares: who besides the owner may work on a board"""

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        share_id: int
    ) -> Optional[BoardShare]:
        query = select(BoardShare).where(BoardShare.id == share_id)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_board_shares(
        db: AsyncSession,
        board_id: int
    ) -> List[BoardShare]:
        query = select(BoardShare).where(
            BoardShare.board_id == board_id
        ).options(selectinload(BoardShare.user)).order_by(BoardShare.created_at)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def is_board_shared_with_user(
        db: AsyncSession,
        board_id: int,
        user_id: int
    ) -> bool:
        query = select(BoardShare.id).where(
            BoardShare.board_id == board_id,
            BoardShare.user_id == user_id
        )
        result = await db.execute(query)
        return result.first() is not None

    @staticmethod
    async def search_users(
        db: AsyncSession,
        query: str,
        limit: Optional[int] = None
    ) -> List[User]:
        """Case-insensitive substring search on username or email.

        Queries shorter than two characters return nothing.
        """
        term = (query or "").strip()
        if len(term) < settings.USER_SEARCH_MIN_LENGTH:
            return []

        pattern = f"%{term}%"
        stmt = select(User).where(
            or_(User.username.ilike(pattern), User.email.ilike(pattern))
        ).order_by(User.username).limit(limit or settings.USER_SEARCH_LIMIT)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    @log_function()
    async def share_board(
        db: AsyncSession,
        board: Board,
        user_id: int
    ) -> BoardShare:
        """Grant a user access to a board.

        The owner can never be shared with, and a (board, user) pair exists
        at most once; both cases raise InvalidState and write nothing.
        """
        user = await UserService.get_by_id(db, user_id)
        if user is None:
            raise NotFound("User not found", field="user_id")

        if board.owner_id == user_id:
            raise InvalidState(OWNER_SHARE_MESSAGE, field="user_id")

        if await ShareService.is_board_shared_with_user(db, board.id, user_id):
            raise InvalidState(DUPLICATE_SHARE_MESSAGE, field="user_id")

        share = BoardShare(board_id=board.id, user_id=user_id)
        db.add(share)
        try:
            await db.commit()
        except IntegrityError:
            # Параллельный запрос успел создать такую же запись
            await db.rollback()
            raise InvalidState(DUPLICATE_SHARE_MESSAGE, field="user_id")

        debug_logger.info(f"Доска {board.id} расшарена пользователю {user_id}")
        await notify_board_shared(board.id, user_id)
        share.user = user
        return share

    @staticmethod
    @log_function()
    async def remove_share(
        db: AsyncSession,
        share: BoardShare
    ) -> bool:
        board_id, user_id = share.board_id, share.user_id
        stmt = delete(BoardShare).where(BoardShare.id == share.id)
        result = await db.execute(stmt)
        await db.commit()

        removed = result.rowcount > 0
        if removed:
            await notify_share_removed(board_id, user_id)
        return removed
