from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.db.database import get_async_session
from kanban.api.dependencies.auth import get_current_user
from kanban.api.dependencies.permissions import check_card_access, check_comment_delete_access
from kanban.models.user import User
from kanban.services.comment_service import CommentService
from kanban.schemas.comment import CommentCreate, CommentResponse, CommentList

router = APIRouter(tags=["comments"])


@router.get("/cards/{card_id}/comments", response_model=CommentList)
async def get_comments(
    card_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Comments of a card, newest first"""
    await check_card_access(card_id, db, current_user)
    comments = await CommentService.get_by_card_id(db=db, card_id=card_id)
    return {"comments": comments}


@router.post("/cards/{card_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    card_id: int,
    comment_data: CommentCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    card = await check_card_access(card_id, db, current_user)
    return await CommentService.create(
        db=db,
        card=card,
        user_id=current_user.id,
        content=comment_data.content,
    )


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Only the author may delete a comment"""
    comment = await check_comment_delete_access(comment_id, db, current_user)
    await CommentService.delete(db=db, comment=comment)
