from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.db.database import get_async_session
from kanban.api.dependencies.auth import get_current_user
from kanban.api.dependencies.permissions import check_board_access, check_board_delete_access
from kanban.models.board import Board, BoardStatus
from kanban.models.user import User
from kanban.schemas.board import (
    BoardCreate,
    BoardUpdate,
    BoardStatusUpdate,
    BoardResponse,
    BoardList,
    BoardCompleteResponse,
)
from kanban.services.board_service import BoardService
from kanban.services.ordering import ColumnSpec
from kanban.logs import debug_logger

router = APIRouter(
    prefix="/boards",
    tags=["boards"],
)


def prepare_board_for_response(board: Board, current_user: User) -> Board:
    """Attach the viewer-dependent fields the response schemas expect"""
    setattr(board, "is_owner", board.owner_id == current_user.id)
    setattr(board, "board_users", BoardService.get_board_users(board))
    return board


@router.get("", response_model=BoardList)
async def get_boards(
    board_status: BoardStatus = Query(BoardStatus.ACTIVE, alias="status"),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Boards owned by or shared with the current user, filtered by status"""
    owned, shared = await BoardService.get_boards_for_user(
        db=db,
        user_id=current_user.id,
        status=board_status,
    )
    for board in owned:
        setattr(board, "is_owner", True)
    for board in shared:
        setattr(board, "is_owner", False)

    boards = owned + shared
    return {"boards": boards, "status": board_status, "total": len(boards)}


@router.post("", response_model=BoardCompleteResponse, status_code=status.HTTP_201_CREATED)
async def create_board(
    board_create: BoardCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Create a board with the default columns"""
    board = await BoardService.create(
        db=db,
        owner_id=current_user.id,
        name=board_create.name,
        description=board_create.description,
    )
    return prepare_board_for_response(board, current_user)


@router.get("/{board_id}", response_model=BoardCompleteResponse)
async def get_board(
    board_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Board with its columns and cards (owner and shared users)"""
    await check_board_access(board_id, db, current_user, require_modify=False)

    board = await BoardService.get_complete_board(db=db, board_id=board_id)
    return prepare_board_for_response(board, current_user)


@router.put("/{board_id}", response_model=BoardCompleteResponse)
async def update_board(
    board_id: int,
    board_update: BoardUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Update a board and optionally reconcile its whole column set (owner only)"""
    board = await check_board_access(board_id, db, current_user, require_modify=True)

    columns = None
    if board_update.columns is not None:
        columns = [
            ColumnSpec(id=column.id, name=column.name, position=column.position, color=column.color)
            for column in board_update.columns
        ]

    updated = await BoardService.update(
        db=db,
        board=board,
        name=board_update.name,
        description=board_update.description,
        status=board_update.status,
        columns=columns,
    )
    debug_logger.debug(f"Пользователь {current_user.id} обновил доску {board_id}")
    return prepare_board_for_response(updated, current_user)


@router.patch("/{board_id}/status", response_model=BoardResponse)
async def update_board_status(
    board_id: int,
    status_update: BoardStatusUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Mark a board active, completed or archived (owner only)"""
    board = await check_board_access(board_id, db, current_user, require_modify=True)
    return await BoardService.update_status(db=db, board=board, status=status_update.status)


@router.delete("/{board_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_board(
    board_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Delete a board with everything on it (owner only)"""
    board = await check_board_delete_access(board_id, db, current_user)
    await BoardService.delete(db=db, board=board)
