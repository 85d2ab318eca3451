import pytest
from unittest.mock import AsyncMock, patch, MagicMock
from datetime import datetime, timedelta
from jose import jwt

from kanban.services.security_service import SecurityService
from kanban.services.user_service import UserService
from kanban.models.user import User
from sqlalchemy.ext.asyncio import AsyncSession


def mock_first_result(mock_db, value):
    """Цепочка моков для result.scalars().first()"""
    mock_scalars = MagicMock()
    mock_scalars.first.return_value = value

    mock_result = MagicMock()
    mock_result.scalars.return_value = mock_scalars

    mock_db.execute.return_value = mock_result


class TestSecurityService:
    """Юниттесты для SecurityService"""

    def setup_method(self):
        self.mock_db = AsyncMock(spec=AsyncSession)
        self.test_user = User(
            id=1,
            email="test@example.com",
            username="testuser",
            hashed_password="$2b$12$test_hashed_password",
            is_active=True
        )

    def test_create_password_hash(self):
        password = "testpassword123"
        hash_result = SecurityService.create_password_hash(password)

        assert hash_result != password
        assert hash_result.startswith("$2b$")

    def test_verify_password(self):
        hash_password = SecurityService.create_password_hash("testpassword123")

        assert SecurityService.verify_password("testpassword123", hash_password) is True
        assert SecurityService.verify_password("wrongpassword", hash_password) is False

    @pytest.mark.asyncio
    async def test_get_user_by_id_found(self):
        mock_first_result(self.mock_db, self.test_user)

        result = await SecurityService.get_user_by_id(self.mock_db, 1)

        assert result == self.test_user
        self.mock_db.execute.assert_called_once()

    @pytest.mark.asyncio
    async def test_authenticate_user_success(self):
        """Тест успешной аутентификации по username или email"""
        password = "testpassword123"
        self.test_user.hashed_password = SecurityService.create_password_hash(password)
        mock_first_result(self.mock_db, self.test_user)

        result = await SecurityService.authenticate_user(self.mock_db, "test@example.com", password)

        assert result == self.test_user

    @pytest.mark.asyncio
    async def test_authenticate_user_wrong_password(self):
        self.test_user.hashed_password = SecurityService.create_password_hash("testpassword123")
        mock_first_result(self.mock_db, self.test_user)

        result = await SecurityService.authenticate_user(self.mock_db, "testuser", "wrongpassword")

        assert result is None

    @pytest.mark.asyncio
    async def test_authenticate_user_not_found(self):
        mock_first_result(self.mock_db, None)

        result = await SecurityService.authenticate_user(self.mock_db, "nonexistent", "testpassword123")

        assert result is None

    @patch('kanban.services.security_service.settings')
    def test_create_refresh_token(self, mock_settings):
        mock_settings.SECRET_KEY = "test_secret_key"
        mock_settings.ALGORITHM = "HS256"

        token = SecurityService.create_refresh_token({"sub": "1"}, timedelta(days=7))

        decoded = jwt.decode(token, "test_secret_key", algorithms=["HS256"])
        assert decoded["sub"] == "1"
        assert decoded["type"] == "refresh"
        assert "jti" in decoded

    @patch('kanban.services.security_service.settings')
    def test_create_tokens(self, mock_settings):
        """Тест создания пары токенов"""
        mock_settings.SECRET_KEY = "test_secret_key"
        mock_settings.ALGORITHM = "HS256"
        mock_settings.ACCESS_TOKEN_EXPIRE_MINUTES = 30
        mock_settings.REFRESH_TOKEN_EXPIRE_DAYS = 7

        tokens = SecurityService.create_tokens(1)

        assert tokens["token_type"] == "bearer"
        access_decoded = jwt.decode(tokens["access_token"], "test_secret_key", algorithms=["HS256"])
        refresh_decoded = jwt.decode(tokens["refresh_token"], "test_secret_key", algorithms=["HS256"])
        assert access_decoded["sub"] == "1"
        assert access_decoded["type"] == "access"
        assert refresh_decoded["type"] == "refresh"

    @patch('kanban.services.security_service.settings')
    def test_verify_token_expired(self, mock_settings):
        mock_settings.SECRET_KEY = "test_secret_key"
        mock_settings.ALGORITHM = "HS256"

        data = {"sub": "1", "type": "access", "exp": datetime.utcnow() - timedelta(minutes=30)}
        token = jwt.encode(data, "test_secret_key", algorithm="HS256")

        assert SecurityService.verify_token(token, "access") is None

    @patch('kanban.services.security_service.settings')
    def test_verify_token_wrong_type(self, mock_settings):
        """Refresh-токен не принимается как access"""
        mock_settings.SECRET_KEY = "test_secret_key"
        mock_settings.ALGORITHM = "HS256"

        data = {"sub": "1", "type": "refresh", "exp": datetime.utcnow() + timedelta(days=7)}
        token = jwt.encode(data, "test_secret_key", algorithm="HS256")

        assert SecurityService.verify_token(token, "access") is None

    @pytest.mark.asyncio
    async def test_get_current_user(self):
        with patch.object(SecurityService, 'verify_token', return_value={"sub": "1", "type": "access"}), \
             patch.object(SecurityService, 'get_user_by_id', return_value=self.test_user) as mock_get:
            result = await SecurityService.get_current_user(self.mock_db, "token")

        assert result == self.test_user
        mock_get.assert_awaited_once_with(self.mock_db, 1)

    @pytest.mark.asyncio
    async def test_refresh_tokens_success(self):
        valid_payload = {"sub": "1", "type": "refresh"}

        with patch.object(SecurityService, 'verify_token', return_value=valid_payload), \
             patch.object(SecurityService, 'get_user_by_id', return_value=self.test_user), \
             patch.object(SecurityService, 'create_tokens') as mock_create_tokens:
            mock_create_tokens.return_value = {
                "access_token": "new_access_token",
                "refresh_token": "new_refresh_token",
                "token_type": "bearer"
            }

            result = await SecurityService.refresh_tokens(self.mock_db, "valid_refresh_token")

        assert result["access_token"] == "new_access_token"
        mock_create_tokens.assert_called_once_with(1)

    @pytest.mark.asyncio
    async def test_refresh_tokens_inactive_user(self):
        self.test_user.is_active = False

        with patch.object(SecurityService, 'verify_token', return_value={"sub": "1", "type": "refresh"}), \
             patch.object(SecurityService, 'get_user_by_id', return_value=self.test_user):
            result = await SecurityService.refresh_tokens(self.mock_db, "valid_refresh_token")

        assert result is None

    @pytest.mark.asyncio
    async def test_refresh_tokens_invalid_token(self):
        with patch.object(SecurityService, 'verify_token', return_value=None):
            result = await SecurityService.refresh_tokens(self.mock_db, "invalid_refresh_token")

        assert result is None


class TestUserService:
    """Юниттесты для UserService"""

    def setup_method(self):
        self.mock_db = AsyncMock(spec=AsyncSession)
        self.mock_db.add = MagicMock()

    @pytest.mark.asyncio
    async def test_create_hashes_password(self):
        with patch.object(SecurityService, 'create_password_hash', return_value="hashed") as mock_hash:
            user = await UserService.create(
                self.mock_db, email="new@example.com", username="newuser", password="password123"
            )

        mock_hash.assert_called_once_with("password123")
        assert user.hashed_password == "hashed"
        self.mock_db.add.assert_called_once_with(user)
        self.mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_by_email_not_found(self):
        mock_first_result(self.mock_db, None)

        result = await UserService.get_by_email(self.mock_db, "nonexistent@example.com")

        assert result is None
        self.mock_db.execute.assert_called_once()
