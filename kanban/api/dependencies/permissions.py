"""
Loading a resource and checking the acting user's rights on it.

Every handler goes through one of these before doing any work: a missing
resource raises NotFound, a failed predicate raises AuthorizationDenied, and
the handler body never runs.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.core.exceptions import AuthorizationDenied, NotFound
from kanban.models.board import Board
from kanban.models.card import Card, Comment
from kanban.models.user import User
from kanban.services import access_service
from kanban.services.board_service import BoardService
from kanban.services.card_service import CardService
from kanban.services.comment_service import CommentService


async def check_board_access(
    board_id: int,
    db: AsyncSession,
    current_user: User,
    require_modify: bool = False
) -> Board:
    """
    Board the user may view, or modify when ``require_modify`` is set

    Viewing is open to the owner and shared users, modifying to the owner only.
    """
    board = await BoardService.get_by_id(db=db, board_id=board_id)
    if not board:
        raise NotFound("Board not found")

    allowed = (
        access_service.can_update_board(current_user, board)
        if require_modify
        else access_service.can_view_board(current_user, board)
    )
    if not allowed:
        raise AuthorizationDenied()
    return board


async def check_board_delete_access(
    board_id: int,
    db: AsyncSession,
    current_user: User
) -> Board:
    board = await BoardService.get_by_id(db=db, board_id=board_id)
    if not board:
        raise NotFound("Board not found")
    if not access_service.can_delete_board(current_user, board):
        raise AuthorizationDenied()
    return board


async def check_card_access(
    card_id: int,
    db: AsyncSession,
    current_user: User,
    load_relations: bool = False
) -> Card:
    """Card the user may view, update, move or delete"""
    card = await CardService.get_by_id(db=db, card_id=card_id, load_relations=load_relations)
    if not card:
        raise NotFound("Card not found")
    if not access_service.can_access_card(current_user, card, card.board):
        raise AuthorizationDenied()
    return card


async def check_comment_delete_access(
    comment_id: int,
    db: AsyncSession,
    current_user: User
) -> Comment:
    comment = await CommentService.get_by_id(db=db, comment_id=comment_id)
    if not comment:
        raise NotFound("Comment not found")
    if not access_service.can_delete_comment(current_user, comment):
        raise AuthorizationDenied()
    return comment
