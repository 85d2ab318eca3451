from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.db.database import get_async_session
from kanban.api.dependencies.auth import get_current_user
from kanban.models.user import User
from kanban.schemas.auth import UserSearchResponse
from kanban.services.share_service import ShareService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search", response_model=UserSearchResponse)
async def search_users(
    q: str = Query("", max_length=255),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """
    Users whose username or email contains ``q``, case-insensitive

    Queries shorter than two characters return an empty list.
    """
    users = await ShareService.search_users(db=db, query=q)
    return {"users": users}
