from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from kanban.models.user import User
from kanban.services.security_service import SecurityService


class UserService:
    """CRUD operations service for User model"""

    @staticmethod
    async def create(
        db: AsyncSession,
        email: str,
        username: str,
        password: str,
        is_active: bool = True
    ) -> User:
        user = User(
            email=email,
            username=username,
            hashed_password=SecurityService.create_password_hash(password),
            is_active=is_active
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        user_id: int
    ) -> Optional[User]:
        query = select(User).where(User.id == user_id)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_by_email(
        db: AsyncSession,
        email: str
    ) -> Optional[User]:
        query = select(User).where(User.email == email)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_by_username(
        db: AsyncSession,
        username: str
    ) -> Optional[User]:
        query = select(User).where(User.username == username)
        result = await db.execute(query)
        return result.scalars().first()
