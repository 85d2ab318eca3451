from typing import Dict, List, Optional, Sequence, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from sqlalchemy.orm import selectinload
from datetime import datetime

from kanban.models.board import Board, BoardShare, BoardStatus
from kanban.models.column import BoardColumn
from kanban.models.card import Card
from kanban.models.user import User
from kanban.services.column_service import ColumnService
from kanban.services.ordering import ColumnSpec, plan_column_reconciliation, plan_column_reorder
from kanban.services.event_service import (
    notify_board_updated,
    notify_board_deleted,
    notify_columns_reordered,
)
from kanban.logs import debug_logger, log_function


def _board_event_data(board: Board) -> dict:
    return {
        "id": board.id,
        "name": board.name,
        "description": board.description,
        "status": board.status.value if isinstance(board.status, BoardStatus) else board.status,
    }


class BoardService:
    """Board aggregate: the board, its column set and its lifecycle"""

    @staticmethod
    @log_function()
    async def create(
        db: AsyncSession,
        owner_id: int,
        name: str,
        description: Optional[str] = None
    ) -> Board:
        """Create a board together with its default columns in one commit"""
        board = Board(
            name=name,
            description=description,
            owner_id=owner_id,
            status=BoardStatus.ACTIVE
        )
        db.add(board)
        await db.flush()

        db.add_all(ColumnService.build_default_columns(board.id))

        await db.commit()
        debug_logger.info(f"Создана доска {board.id} пользователем {owner_id}")
        return await BoardService.get_complete_board(db, board.id)

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        board_id: int,
        load_columns: bool = False
    ) -> Optional[Board]:
        """Board by id. Shares are always loaded, access checks need them"""
        query = select(Board).where(Board.id == board_id).options(selectinload(Board.shares))
        if load_columns:
            query = query.options(selectinload(Board.columns))
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_complete_board(
        db: AsyncSession,
        board_id: int
    ) -> Optional[Board]:
        """Board with ordered columns, ordered cards, assignees and shared users"""
        query = select(Board).where(Board.id == board_id).options(
            selectinload(Board.columns).selectinload(BoardColumn.cards).selectinload(Card.assigned_user),
            selectinload(Board.shares),
            selectinload(Board.owner),
            selectinload(Board.shared_with),
        ).execution_options(populate_existing=True)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    def get_board_users(board: Board) -> List[User]:
        """Everyone with access: the owner first, then shared users"""
        users = [board.owner] if board.owner is not None else []
        seen = {user.id for user in users}
        for user in board.shared_with:
            if user.id not in seen:
                users.append(user)
                seen.add(user.id)
        return users

    @staticmethod
    async def get_boards_for_user(
        db: AsyncSession,
        user_id: int,
        status: BoardStatus = BoardStatus.ACTIVE
    ) -> Tuple[List[Board], List[Board]]:
        """Boards owned by the user and boards shared with them, filtered by status"""
        owned_query = select(Board).where(
            Board.owner_id == user_id,
            Board.status == status
        ).options(selectinload(Board.columns)).order_by(Board.created_at.desc())

        shared_query = select(Board).join(
            BoardShare, BoardShare.board_id == Board.id
        ).where(
            BoardShare.user_id == user_id,
            Board.status == status
        ).options(selectinload(Board.columns)).order_by(Board.created_at.desc())

        owned = list((await db.execute(owned_query)).scalars().all())
        shared = list((await db.execute(shared_query)).scalars().all())
        return owned, shared

    @staticmethod
    @log_function()
    async def update(
        db: AsyncSession,
        board: Board,
        name: str,
        description: Optional[str] = None,
        status: Optional[BoardStatus] = None,
        columns: Optional[Sequence[ColumnSpec]] = None
    ) -> Board:
        """Update board fields and, when ``columns`` is given, reconcile the column set.

        Everything happens in one transaction. The column plan is validated
        before the first write; any failure rolls back the board fields too.
        """
        plan = None
        if columns is not None:
            existing = await ColumnService.get_with_card_counts(db, board.id)
            plan = plan_column_reconciliation(existing, columns)

        try:
            board.name = name
            board.description = description
            if status is not None:
                board.status = status
            # Явно устанавливаем updated_at для предотвращения проблем с часовыми поясами
            board.updated_at = datetime.utcnow().replace(tzinfo=None)

            if plan is not None and not plan.is_noop:
                debug_logger.debug(
                    f"Синхронизация колонок доски {board.id}: "
                    f"create={len(plan.to_create)} update={len(plan.to_update)} delete={plan.to_delete}"
                )
                await ColumnService.apply_reconciliation(db, board.id, plan)

            await db.commit()
        except Exception:
            await db.rollback()
            debug_logger.error(f"Ошибка при обновлении доски {board.id}")
            raise

        updated = await BoardService.get_complete_board(db, board.id)
        await notify_board_updated(updated.id, _board_event_data(updated))
        return updated

    @staticmethod
    @log_function()
    async def update_status(
        db: AsyncSession,
        board: Board,
        status: BoardStatus
    ) -> Board:
        board.status = status
        board.updated_at = datetime.utcnow().replace(tzinfo=None)
        await db.commit()
        await notify_board_updated(board.id, _board_event_data(board))
        return board

    @staticmethod
    @log_function()
    async def reorder_columns(
        db: AsyncSession,
        board: Board,
        columns: List[Dict[str, int]]
    ) -> List[BoardColumn]:
        """Rewrite column positions only. Unknown ids reject the whole request"""
        existing = await ColumnService.get_by_board_id(db, board.id)
        positions = plan_column_reorder([column.id for column in existing], columns)

        try:
            await ColumnService.apply_positions(db, board.id, positions)
            await db.commit()
        except Exception:
            await db.rollback()
            debug_logger.error(f"Ошибка при изменении порядка колонок доски {board.id}")
            raise

        reordered = await ColumnService.get_by_board_id(db, board.id)
        await notify_columns_reordered(
            board.id,
            [{"id": column.id, "position": column.position} for column in reordered]
        )
        return reordered

    @staticmethod
    @log_function()
    async def delete(
        db: AsyncSession,
        board: Board
    ) -> bool:
        """Delete a board; columns, cards, comments and shares go with it"""
        board_id = board.id
        stmt = delete(Board).where(Board.id == board_id)
        result = await db.execute(stmt)
        await db.commit()
        deleted = result.rowcount > 0
        if deleted:
            await notify_board_deleted(board_id)
        return deleted
