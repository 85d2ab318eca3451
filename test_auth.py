import pytest
from unittest.mock import AsyncMock, patch
from fastapi import HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.api.v1.auth import register, login, refresh_token, get_current_user_info
from kanban.api.dependencies.auth import get_current_user
from kanban.schemas.auth import UserCreate, RefreshTokenRequest
from kanban.models.user import User
from kanban.services.security_service import SecurityService
from kanban.services.user_service import UserService


class TestAuthEndpoints:
    """Юниттесты для эндпоинтов аутентификации"""

    def setup_method(self):
        self.mock_db = AsyncMock(spec=AsyncSession)
        self.mock_user = User(
            id=1,
            email="test@example.com",
            username="testuser",
            hashed_password="hashed_password",
            is_active=True
        )

    @pytest.mark.asyncio
    async def test_register_success(self):
        user_data = UserCreate(
            email="newuser@example.com",
            username="newuser",
            password="password123"
        )
        created = User(id=2, email="newuser@example.com", username="newuser", hashed_password="hashed")

        with patch.object(UserService, 'get_by_email', return_value=None), \
             patch.object(UserService, 'get_by_username', return_value=None), \
             patch.object(UserService, 'create', return_value=created) as mock_create:

            result = await register(user_data, self.mock_db)

        assert result == created
        mock_create.assert_awaited_once_with(
            self.mock_db,
            email="newuser@example.com",
            username="newuser",
            password="password123"
        )

    @pytest.mark.asyncio
    async def test_register_email_exists(self):
        user_data = UserCreate(
            email="existing@example.com",
            username="newuser",
            password="password123"
        )

        with patch.object(UserService, 'get_by_email', return_value=self.mock_user):
            with pytest.raises(HTTPException) as exc_info:
                await register(user_data, self.mock_db)

        assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST
        assert "Email already registered" in str(exc_info.value.detail)

    @pytest.mark.asyncio
    async def test_register_username_exists(self):
        user_data = UserCreate(
            email="newuser@example.com",
            username="existinguser",
            password="password123"
        )

        with patch.object(UserService, 'get_by_email', return_value=None), \
             patch.object(UserService, 'get_by_username', return_value=self.mock_user):
            with pytest.raises(HTTPException) as exc_info:
                await register(user_data, self.mock_db)

        assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST
        assert "Username already taken" in str(exc_info.value.detail)

    @pytest.mark.asyncio
    async def test_login_success(self):
        form_data = OAuth2PasswordRequestForm(username="testuser", password="password123")
        tokens = {
            "access_token": "test_access_token",
            "refresh_token": "test_refresh_token",
            "token_type": "bearer"
        }

        with patch.object(SecurityService, 'authenticate_user', return_value=self.mock_user), \
             patch.object(SecurityService, 'create_tokens', return_value=tokens):
            result = await login(form_data, self.mock_db)

        assert result == tokens

    @pytest.mark.asyncio
    async def test_login_invalid_credentials(self):
        form_data = OAuth2PasswordRequestForm(username="wronguser", password="wrongpassword")

        with patch.object(SecurityService, 'authenticate_user', return_value=None):
            with pytest.raises(HTTPException) as exc_info:
                await login(form_data, self.mock_db)

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_login_inactive_user(self):
        """Неактивный пользователь не получает токены"""
        form_data = OAuth2PasswordRequestForm(username="testuser", password="password123")
        self.mock_user.is_active = False

        with patch.object(SecurityService, 'authenticate_user', return_value=self.mock_user):
            with pytest.raises(HTTPException) as exc_info:
                await login(form_data, self.mock_db)

        assert exc_info.value.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_refresh_token_invalid(self):
        refresh_data = RefreshTokenRequest(refresh_token="invalid_refresh_token")

        with patch.object(SecurityService, 'refresh_tokens', return_value=None):
            with pytest.raises(HTTPException) as exc_info:
                await refresh_token(refresh_data, self.mock_db)

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
        assert "Invalid refresh token" in str(exc_info.value.detail)

    @pytest.mark.asyncio
    async def test_get_current_user_info(self):
        result = await get_current_user_info(self.mock_user)

        assert result == self.mock_user


class TestCurrentUserDependency:
    """Тесты зависимости, определяющей текущего пользователя"""

    def setup_method(self):
        self.mock_db = AsyncMock(spec=AsyncSession)

    @pytest.mark.asyncio
    async def test_invalid_token(self):
        with patch.object(SecurityService, 'get_current_user', return_value=None):
            with pytest.raises(HTTPException) as exc_info:
                await get_current_user("bad-token", self.mock_db)

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_inactive_user(self):
        user = User(id=1, email="a@example.com", username="alice", hashed_password="x", is_active=False)

        with patch.object(SecurityService, 'get_current_user', return_value=user):
            with pytest.raises(HTTPException) as exc_info:
                await get_current_user("token", self.mock_db)

        assert exc_info.value.status_code == status.HTTP_403_FORBIDDEN


class TestUserCreateSchema:
    @pytest.mark.parametrize("payload", [
        {"email": "not-an-email", "username": "validuser", "password": "password123"},
        {"email": "test@example.com", "username": "validuser", "password": "123"},
        {"email": "test@example.com", "username": "ab", "password": "password123"},
    ])
    def test_invalid_payload(self, payload):
        with pytest.raises(ValidationError):
            UserCreate(**payload)
