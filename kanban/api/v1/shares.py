from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.db.database import get_async_session
from kanban.api.dependencies.auth import get_current_user
from kanban.api.dependencies.permissions import check_board_access
from kanban.core.exceptions import AuthorizationDenied, NotFound
from kanban.models.user import User
from kanban.schemas.share import ShareCreate, ShareResponse, ShareList
from kanban.services import access_service
from kanban.services.share_service import ShareService

router = APIRouter(
    prefix="/boards/{board_id}/shares",
    tags=["shares"],
)


@router.get("", response_model=ShareList)
async def get_shares(
    board_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    await check_board_access(board_id, db, current_user, require_modify=False)
    shares = await ShareService.get_board_shares(db=db, board_id=board_id)
    return {"shares": shares}


@router.post("", response_model=ShareResponse, status_code=status.HTTP_201_CREATED)
async def share_board(
    board_id: int,
    share_data: ShareCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """
    Share a board with another user (owner only)

    Sharing with the owner or sharing twice is rejected with 409.
    """
    board = await check_board_access(board_id, db, current_user, require_modify=False)
    if not access_service.can_manage_shares(current_user, board):
        raise AuthorizationDenied()

    return await ShareService.share_board(db=db, board=board, user_id=share_data.user_id)


@router.delete("/{share_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_share(
    board_id: int,
    share_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    board = await check_board_access(board_id, db, current_user, require_modify=False)
    if not access_service.can_manage_shares(current_user, board):
        raise AuthorizationDenied()

    share = await ShareService.get_by_id(db=db, share_id=share_id)
    if not share or share.board_id != board.id:
        raise NotFound("Share not found")

    await ShareService.remove_share(db=db, share=share)
