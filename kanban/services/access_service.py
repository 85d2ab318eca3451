"""
Access rules for boards, cards and comments.

Plain predicates over (user, resource). Boards passed in must have their
``shares`` relationship loaded; none of these functions touch the database.
"""
from typing import Optional

from kanban.models.board import Board
from kanban.models.card import Card, Comment
from kanban.models.user import User


def is_board_owner(user_id: Optional[int], board: Board) -> bool:
    return user_id is not None and user_id == board.owner_id


def has_board_access(user_id: Optional[int], board: Board) -> bool:
    """Owner or a user the board is shared with"""
    if user_id is None:
        return False
    return is_board_owner(user_id, board) or any(share.user_id == user_id for share in board.shares)


def can_view_board(user: User, board: Board) -> bool:
    return has_board_access(user.id, board)


def can_update_board(user: User, board: Board) -> bool:
    # Шаринг не дает прав на структуру доски
    return is_board_owner(user.id, board)


def can_delete_board(user: User, board: Board) -> bool:
    return is_board_owner(user.id, board)


def can_manage_shares(user: User, board: Board) -> bool:
    return is_board_owner(user.id, board)


def can_access_card(user: User, card: Card, board: Board) -> bool:
    """View, update, move and delete rights on a card are the same.

    Granted to the card's assignee or creator, and to anyone who can view
    the card's board.
    """
    if user.id is not None and user.id in (card.assigned_user_id, card.creator_id):
        return True
    if board is None or board.id != card.board_id:
        return False
    return can_view_board(user, board)


def can_delete_comment(user: User, comment: Comment) -> bool:
    """Only the author may delete a comment"""
    return user.id == comment.user_id
