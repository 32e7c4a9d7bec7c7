"""
AdminUserRepository for database operations on AdminUser model
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from database_models import AdminUser


class AdminUserRepository:
    """
    Repository class for AdminUser database operations.
    Encapsulates all database logic for the AdminUser model.
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize the repository with a database session.

        Args:
            db: AsyncSession instance for database operations
        """
        self.db = db

    async def get_by_username(self, username: str) -> Optional[AdminUser]:
        """
        Retrieve an admin by username.

        Args:
            username: Login name (case-insensitive search)

        Returns:
            AdminUser object if found, None otherwise
        """
        result = await self.db.execute(
            select(AdminUser).where(AdminUser.username == username.lower())
        )
        return result.scalar_one_or_none()

    async def create_user(self, username: str, hashed_password: str, role: str = "admin") -> AdminUser:
        """
        Create a new admin user.

        Args:
            username: Login name, stored lowercased
            hashed_password: Password hash produced by auth_utils.hash_password
            role: Role label stored in the session on login

        Returns:
            Created AdminUser object
        """
        user = AdminUser(
            username=username.lower(),
            hashed_password=hashed_password,
            role=role,
        )
        self.db.add(user)
        await self.db.flush()  # Flush to get the ID without committing
        await self.db.refresh(user)
        return user
