from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import transaction

from .models import Role, User


class UserRepository:

    @staticmethod
    async def save(db: AsyncSession, user: User) -> User:
        async with transaction(db):
            db.add(user)
        return await UserRepository.reload(db, user.id)

    @staticmethod
    async def reload(db: AsyncSession, user_id: int) -> User:
        result = await db.execute(
            select(User).where(User.id == user_id).execution_options(populate_existing=True)
        )
        return result.scalars().one()

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    @staticmethod
    async def count_with_role(db: AsyncSession, role_id: int) -> int:
        result = await db.execute(select(func.count(User.id)).where(User.role_id == role_id))
        return result.scalar_one()

    @staticmethod
    async def list_all(db: AsyncSession) -> Sequence[User]:
        result = await db.execute(select(User).order_by(User.id))
        return result.scalars().all()


class RoleRepository:

    @staticmethod
    async def create(db: AsyncSession, role: Role) -> Role:
        async with transaction(db):
            db.add(role)
        return role

    @staticmethod
    async def get_by_id(db: AsyncSession, role_id: int) -> Optional[Role]:
        result = await db.execute(select(Role).where(Role.id == role_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_name(db: AsyncSession, name: str) -> Optional[Role]:
        result = await db.execute(select(Role).where(Role.name == name))
        return result.scalars().first()

    @staticmethod
    async def list_all(db: AsyncSession) -> Sequence[Role]:
        result = await db.execute(select(Role).order_by(Role.id))
        return result.scalars().all()

    @staticmethod
    async def ensure_roles(db: AsyncSession, names: Sequence[str]) -> None:
        """Creates any of the given roles that do not exist yet."""
        async with transaction(db):
            result = await db.execute(select(Role.name).where(Role.name.in_(names)))
            existing = set(result.scalars().all())
            for name in names:
                if name not in existing:
                    db.add(Role(name=name))
