from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.db.database import get_async_session
from kanban.api.dependencies.auth import get_current_user
from kanban.api.dependencies.permissions import check_board_access
from kanban.core.exceptions import NotFound
from kanban.models.user import User
from kanban.schemas.column import ColumnCompactResult, ColumnList, ColumnReorder
from kanban.services.board_service import BoardService
from kanban.services.card_service import CardService
from kanban.services.column_service import ColumnService

router = APIRouter(
    prefix="/boards/{board_id}/columns",
    tags=["columns"],
)


@router.get("", response_model=ColumnList)
async def get_columns(
    board_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Columns of a board ordered by position"""
    await check_board_access(board_id, db, current_user, require_modify=False)
    columns = await ColumnService.get_by_board_id(db=db, board_id=board_id)
    return {"columns": columns}


@router.post("/reorder", response_model=ColumnList)
async def reorder_columns(
    board_id: int,
    reorder: ColumnReorder,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """
    Rewrite column positions without touching names or the column set

    Every id must belong to the board, otherwise nothing is written.
    """
    board = await check_board_access(board_id, db, current_user, require_modify=True)
    columns = await BoardService.reorder_columns(
        db=db,
        board=board,
        columns=[item.model_dump() for item in reorder.columns],
    )
    return {"columns": columns}


@router.post("/{column_id}/compact", response_model=ColumnCompactResult)
async def compact_column(
    board_id: int,
    column_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Renumber the cards of a column 0..n-1, closing gaps left by deletes"""
    board = await check_board_access(board_id, db, current_user, require_modify=True)
    column = await ColumnService.get_by_id(db=db, column_id=column_id)
    if not column or column.board_id != board.id:
        raise NotFound("Column not found")

    renumbered = await CardService.compact_column(db=db, column_id=column_id)
    return {"column_id": column_id, "renumbered": renumbered}
