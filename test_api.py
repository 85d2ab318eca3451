import pytest
from datetime import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.main import app
from kanban.api.dependencies.auth import get_current_user
from kanban.core.exceptions import InvalidState, ValidationFailed
from kanban.db.database import get_async_session
from kanban.models.user import User
from kanban.services.board_service import BoardService
from kanban.services.card_service import CardService
from kanban.services.column_service import ColumnService
from kanban.services.share_service import ShareService

NOW = datetime(2024, 1, 1, 12, 0, 0)


def make_user(user_id):
    user = MagicMock(spec=User)
    user.id = user_id
    user.is_active = True
    return user


@pytest.fixture
def current_user():
    return make_user(1)


@pytest.fixture
def client(current_user):
    """Клиент без базы данных: сессия и пользователь подменены"""
    async def override_session():
        yield AsyncMock(spec=AsyncSession)

    app.dependency_overrides[get_async_session] = override_session
    app.dependency_overrides[get_current_user] = lambda: current_user
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def board():
    return SimpleNamespace(id=1, owner_id=1, shares=[SimpleNamespace(user_id=2)])


class TestErrorMapping:
    """Доменные ошибки превращаются в HTTP-ответы в одном месте"""

    def test_unknown_board_is_404(self, client):
        with patch.object(BoardService, 'get_by_id', new_callable=AsyncMock, return_value=None):
            response = client.get("/api/v1/boards/999/columns")

        assert response.status_code == 404
        assert response.json()["detail"] == "Board not found"

    def test_shared_user_cannot_update_board(self, client, current_user, board):
        current_user.id = 2

        with patch.object(BoardService, 'get_by_id', new_callable=AsyncMock, return_value=board), \
             patch.object(BoardService, 'update', new_callable=AsyncMock) as mock_update:
            response = client.put(
                "/api/v1/boards/1",
                json={"name": "Renamed", "status": "active"},
            )

        assert response.status_code == 403
        mock_update.assert_not_awaited()

    def test_reconciliation_error_is_422(self, client, board):
        error = ValidationFailed.single(
            "columns",
            "Cannot delete column 'To Do' because it contains 1 card(s). "
            "Please move or delete the cards first."
        )

        with patch.object(BoardService, 'get_by_id', new_callable=AsyncMock, return_value=board), \
             patch.object(BoardService, 'update', new_callable=AsyncMock, side_effect=error):
            response = client.put(
                "/api/v1/boards/1",
                json={
                    "name": "Sprint 1",
                    "status": "active",
                    "columns": [{"id": 2, "name": "Done", "position": 0}],
                },
            )

        assert response.status_code == 422
        assert response.json()["errors"] == {"columns": [error.message]}

    def test_share_with_owner_is_409(self, client, board):
        error = InvalidState("Cannot share board with the owner", field="user_id")

        with patch.object(BoardService, 'get_by_id', new_callable=AsyncMock, return_value=board), \
             patch.object(ShareService, 'share_board', new_callable=AsyncMock, side_effect=error):
            response = client.post("/api/v1/boards/1/shares", json={"user_id": 1})

        assert response.status_code == 409
        assert response.json()["detail"] == "Cannot share board with the owner"

    def test_shared_user_cannot_share(self, client, current_user, board):
        current_user.id = 2

        with patch.object(BoardService, 'get_by_id', new_callable=AsyncMock, return_value=board), \
             patch.object(ShareService, 'share_board', new_callable=AsyncMock) as mock_share:
            response = client.post("/api/v1/boards/1/shares", json={"user_id": 3})

        assert response.status_code == 403
        mock_share.assert_not_awaited()


class TestCardEndpoints:
    def make_card(self, **overrides):
        data = dict(
            id=7, board_id=1, column_id=11, title="Task", description=None, position=0,
            assigned_user_id=None, creator_id=1, created_at=NOW, updated_at=NOW,
            assigned_user=None, comments=[],
            board=SimpleNamespace(id=1, owner_id=1, shares=[]),
        )
        data.update(overrides)
        return SimpleNamespace(**data)

    def test_move_card(self, client):
        card = self.make_card(column_id=10)
        moved = self.make_card(column_id=11, position=0)

        with patch.object(CardService, 'get_by_id', new_callable=AsyncMock, return_value=card), \
             patch.object(CardService, 'move_card', new_callable=AsyncMock, return_value=moved) as mock_move:
            response = client.post("/api/v1/cards/7/move", json={"column_id": 11, "position": 0})

        assert response.status_code == 200
        assert response.json()["column_id"] == 11
        assert mock_move.await_args.kwargs["new_column_id"] == 11
        assert mock_move.await_args.kwargs["new_position"] == 0

    def test_negative_position_rejected(self, client):
        response = client.post("/api/v1/cards/7/move", json={"column_id": 11, "position": -1})

        assert response.status_code == 422

    def test_stranger_cannot_move(self, client, current_user):
        current_user.id = 3
        card = self.make_card()

        with patch.object(CardService, 'get_by_id', new_callable=AsyncMock, return_value=card), \
             patch.object(CardService, 'move_card', new_callable=AsyncMock) as mock_move:
            response = client.post("/api/v1/cards/7/move", json={"column_id": 11, "position": 0})

        assert response.status_code == 403
        mock_move.assert_not_awaited()


class TestColumnCompact:
    """Сжатие позиций карточек в колонке доступно только владельцу"""

    def test_owner_compacts_column(self, client, board):
        column = SimpleNamespace(id=10, board_id=1)

        with patch.object(BoardService, 'get_by_id', new_callable=AsyncMock, return_value=board), \
             patch.object(ColumnService, 'get_by_id', new_callable=AsyncMock, return_value=column), \
             patch.object(CardService, 'compact_column', new_callable=AsyncMock, return_value=2) as mock_compact:
            response = client.post("/api/v1/boards/1/columns/10/compact")

        assert response.status_code == 200
        assert response.json() == {"column_id": 10, "renumbered": 2}
        assert mock_compact.await_args.kwargs["column_id"] == 10

    def test_shared_user_cannot_compact(self, client, current_user, board):
        current_user.id = 2

        with patch.object(BoardService, 'get_by_id', new_callable=AsyncMock, return_value=board), \
             patch.object(CardService, 'compact_column', new_callable=AsyncMock) as mock_compact:
            response = client.post("/api/v1/boards/1/columns/10/compact")

        assert response.status_code == 403
        mock_compact.assert_not_awaited()

    def test_column_of_other_board_is_404(self, client, board):
        column = SimpleNamespace(id=10, board_id=2)

        with patch.object(BoardService, 'get_by_id', new_callable=AsyncMock, return_value=board), \
             patch.object(ColumnService, 'get_by_id', new_callable=AsyncMock, return_value=column), \
             patch.object(CardService, 'compact_column', new_callable=AsyncMock) as mock_compact:
            response = client.post("/api/v1/boards/1/columns/10/compact")

        assert response.status_code == 404
        assert response.json()["detail"] == "Column not found"
        mock_compact.assert_not_awaited()


class TestUserSearch:
    def test_short_query_returns_empty_list(self, client):
        response = client.get("/api/v1/users/search", params={"q": "a"})

        assert response.status_code == 200
        assert response.json() == {"users": []}
