from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.db.database import get_async_session
from kanban.api.dependencies.auth import get_current_user
from kanban.api.dependencies.permissions import check_board_access, check_card_access
from kanban.models.user import User
from kanban.schemas.card import (
    CardCreate,
    CardUpdate,
    CardMove,
    CardDetailResponse,
)
from kanban.services.card_service import CardService
from kanban.logs import debug_logger

router = APIRouter(
    prefix="/cards",
    tags=["cards"],
)


@router.post("", response_model=CardDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_card(
    card_data: CardCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """
    Create a card at the end of a column

    Anyone who can view the board may add cards to it; the column must belong
    to the same board and the assignee, if any, must have access to it.
    """
    board = await check_board_access(card_data.board_id, db, current_user, require_modify=False)

    card = await CardService.create(
        db=db,
        board=board,
        column_id=card_data.column_id,
        title=card_data.title,
        description=card_data.description,
        assigned_user_id=card_data.assigned_user_id,
        creator_id=current_user.id,
    )
    return card


@router.get("/{card_id}", response_model=CardDetailResponse)
async def get_card(
    card_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Card with its assignee and comments"""
    return await check_card_access(card_id, db, current_user, load_relations=True)


@router.put("/{card_id}", response_model=CardDetailResponse)
async def update_card(
    card_id: int,
    card_update: CardUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    card = await check_card_access(card_id, db, current_user)
    return await CardService.update(
        db=db,
        card=card,
        title=card_update.title,
        description=card_update.description,
        assigned_user_id=card_update.assigned_user_id,
    )


@router.post("/{card_id}/move", response_model=CardDetailResponse)
async def move_card(
    card_id: int,
    move_data: CardMove,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """
    Move a card to a column of the same board at the given position

    Positions past the end of the column place the card last.
    """
    card = await check_card_access(card_id, db, current_user)
    debug_logger.debug(
        f"Пользователь {current_user.id} перемещает карточку {card_id} "
        f"в колонку {move_data.column_id}, позиция {move_data.position}"
    )
    return await CardService.move_card(
        db=db,
        card=card,
        new_column_id=move_data.column_id,
        new_position=move_data.position,
    )


@router.delete("/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_card(
    card_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    card = await check_card_access(card_id, db, current_user)
    await CardService.delete(db=db, card=card)
