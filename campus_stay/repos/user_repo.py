import uuid
from typing import Optional

from sqlalchemy import func, or_, select

from campus_stay.models.enums import UserRole
from campus_stay.models.models import User

from .base_repo import BaseRepo


class UserRepo(BaseRepo):
    async def get_by_email(self, email: str) -> User | None:
        email_payload = email.strip().lower()
        result = await self.db.execute(select(User).where(User.email == email_payload))
        return result.scalar_one_or_none()

    async def get_active_by_email(self, email: str) -> User | None:
        email_payload = email.strip().lower()
        result = await self.db.execute(
            select(User).where(User.email == email_payload, User.active())
        )
        return result.scalar_one_or_none()

    async def get_active_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.id == user_id, User.active())
        )
        return result.scalar_one_or_none()

    async def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_verification_token(self, token: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.verification_token == token, User.active())
        )
        return result.scalars().first()

    async def get_by_reset_token(self, token: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.reset_password_token == token, User.active())
        )
        return result.scalars().first()

    async def create(self, user: User) -> User:
        self.db.add(user)
        return await self._commit_and_refresh(user)

    async def refresh_sets(self, user: User) -> User:
        await self.db.refresh(
            user, attribute_names=["saved_listings", "saved_roommates", "unlocked_listings"]
        )
        return user

    def _filtered(self, stmt, role=None, search=None, verified=None):
        stmt = stmt.where(User.active())
        if role is not None:
            stmt = stmt.where(User.role == role)
        if verified is not None:
            stmt = stmt.where(User.is_verified.is_(verified))
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
        return stmt

    async def list_users(
        self,
        offset: int,
        limit: int,
        role: UserRole | None = None,
        search: str | None = None,
        verified: bool | None = None,
    ) -> tuple[list[User], int]:
        stmt = self._filtered(select(User), role, search, verified)
        count_stmt = self._filtered(select(func.count(User.id)), role, search, verified)

        total = (await self.db.execute(count_stmt)).scalar_one()
        result = await self.db.execute(
            stmt.order_by(User.created_at.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    async def count_active(self) -> int:
        result = await self.db.execute(select(func.count(User.id)).where(User.active()))
        return result.scalar_one()

    async def count_by_role(self) -> dict[UserRole, int]:
        result = await self.db.execute(
            select(User.role, func.count(User.id)).where(User.active()).group_by(User.role)
        )
        return {role: count for role, count in result.all()}

    async def active_admin_emails(self) -> list[str]:
        result = await self.db.execute(
            select(User.email).where(User.role == UserRole.ADMIN, User.active())
        )
        return list(result.scalars().all())

    async def recent(self, limit: int) -> list[User]:
        result = await self.db.execute(
            select(User).where(User.active()).order_by(User.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())

