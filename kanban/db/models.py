# Import all models here so Base.metadata knows every table
from kanban.db.base import Base
from kanban.models.user import User
from kanban.models.board import Board, BoardShare, BoardStatus
from kanban.models.column import BoardColumn
from kanban.models.card import Card, Comment
