from kanban.models.user import User
from kanban.models.board import Board, BoardShare, BoardStatus
from kanban.models.column import BoardColumn
from kanban.models.card import Card, Comment
