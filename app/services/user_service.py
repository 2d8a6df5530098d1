from collections import defaultdict
from typing import List, Optional, Tuple
from uuid import UUID
from datetime import timedelta
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError

from app.models.user import User, UserRole, AuthProvider
from app.models.favorite import Favorite
from app.models.property import utcnow
from app.schemas.user import (
    UserCreate,
    UserUpdate,
    AdminUserUpdate,
    SocialLoginRequest,
    RegistrationDay,
)
from app.core.security import get_password_hash, verify_password
from app.core.exceptions import (
    UserAlreadyExistsException,
    UserNotFoundException,
    IncorrectPasswordException,
)
from app.core.monitoring import MetricsTracker

logger = logging.getLogger(__name__)


class UserService:
    """Service layer for user operations"""

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: UUID) -> Optional[User]:
        """Get user by ID"""
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)"""
        result = await db.execute(
            select(User).where(func.lower(User.email) == email.lower())
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_provider(
            db: AsyncSession,
            provider: AuthProvider,
            provider_id: str
    ) -> Optional[User]:
        result = await db.execute(
            select(User).where(User.provider == provider, User.provider_id == provider_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def create_user(db: AsyncSession, user_data: UserCreate) -> User:
        """
        Create a new user

        Args:
            db: Database session
            user_data: User creation data

        Returns:
            Created user object

        Raises:
            UserAlreadyExistsException: If email already exists
        """
        existing_user = await UserService.get_by_email(db, user_data.email)
        if existing_user:
            raise UserAlreadyExistsException(user_data.email)

        db_user = User(
            name=user_data.name,
            email=user_data.email.lower(),
            hashed_password=get_password_hash(user_data.password),
            role=user_data.role,
        )

        try:
            db.add(db_user)
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise UserAlreadyExistsException(user_data.email)

        MetricsTracker.track_user_registration("email")
        logger.info(f"Registered user {db_user.id} ({db_user.role.value})")
        return db_user

    @staticmethod
    async def authenticate(db: AsyncSession, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password

        Returns:
            User object if the credentials match, None otherwise. Inactive
            users are returned so the caller can report them distinctly.
        """
        user = await UserService.get_by_email(db, email)
        if not user or not verify_password(password, user.hashed_password):
            MetricsTracker.track_user_login("email", success=False)
            return None

        if user.is_active:
            user.last_login = utcnow()
            await db.flush()
            MetricsTracker.track_user_login("email")

        return user

    @staticmethod
    async def social_login(db: AsyncSession, identity: SocialLoginRequest) -> Tuple[User, bool]:
        """
        Resolve a federated identity to an account

        Only the exact (provider, provider_id) pair signs in to an existing
        account. An unknown identity gets a new password-less account unless
        its email is already registered.

        Returns:
            (user, created)

        Raises:
            UserAlreadyExistsException: email belongs to another account
        """
        created = False
        user = await UserService.get_by_provider(db, identity.provider, identity.provider_id)

        if not user:
            if await UserService.get_by_email(db, identity.email):
                logger.warning(f"Social login refused for registered email via {identity.provider.value}")
                raise UserAlreadyExistsException(identity.email)
            user = User(
                name=identity.name,
                email=identity.email.lower(),
                hashed_password=None,
                provider=identity.provider,
                provider_id=identity.provider_id,
                role=UserRole.USER,
            )
            db.add(user)
            created = True
            MetricsTracker.track_user_registration(identity.provider.value)

        if user.is_active:
            user.last_login = utcnow()
            MetricsTracker.track_user_login(identity.provider.value)

        await db.flush()
        return user, created

    @staticmethod
    async def list_users(
            db: AsyncSession,
            skip: int = 0,
            limit: int = 20
    ) -> Tuple[List[User], int]:
        """All users, newest first"""
        total = (await db.execute(select(func.count(User.id)))).scalar_one()
        result = await db.execute(
            select(User).order_by(User.created_at.desc(), User.id).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total

    @staticmethod
    async def update_profile(db: AsyncSession, user: User, user_data: UserUpdate) -> User:
        """Update the caller's own profile"""
        user.name = user_data.name
        user.updated_at = utcnow()
        await db.flush()
        return user

    @staticmethod
    async def replace_user(
            db: AsyncSession,
            user_id: UUID,
            user_data: AdminUserUpdate
    ) -> User:
        """Replace name, email and role of a user"""
        user = await UserService.get_by_id(db, user_id)
        if not user:
            raise UserNotFoundException(user_id=user_id)

        email = user_data.email.lower()
        if email != user.email.lower():
            other = await UserService.get_by_email(db, email)
            if other and other.id != user.id:
                raise UserAlreadyExistsException(user_data.email)

        user.name = user_data.name
        user.email = email
        user.role = user_data.role
        user.updated_at = utcnow()
        await db.flush()
        return user

    @staticmethod
    async def delete_user(db: AsyncSession, user_id: UUID) -> None:
        """Hard delete a user together with their favorites"""
        user = await UserService.get_by_id(db, user_id)
        if not user:
            raise UserNotFoundException(user_id=user_id)

        await db.execute(delete(Favorite).where(Favorite.user_id == user_id))
        await db.execute(delete(User).where(User.id == user_id))
        logger.info(f"Deleted user {user_id}")

    @staticmethod
    async def change_password(
            db: AsyncSession,
            user: User,
            current_password: str,
            new_password: str
    ) -> None:
        """
        Change user password

        Raises:
            IncorrectPasswordException: If current password is incorrect
                (always the case for social-only accounts)
        """
        if not verify_password(current_password, user.hashed_password):
            raise IncorrectPasswordException()

        user.hashed_password = get_password_hash(new_password)
        user.updated_at = utcnow()
        await db.flush()

    @staticmethod
    async def registration_stats(db: AsyncSession, days: int = 30) -> List[RegistrationDay]:
        """Registrations per day over the last `days` days, newest first"""
        since = utcnow() - timedelta(days=days)
        result = await db.execute(
            select(User.created_at, User.provider).where(User.created_at >= since)
        )

        buckets = defaultdict(lambda: defaultdict(int))
        for created_at, provider in result.all():
            bucket = buckets[created_at.date()]
            bucket["total"] += 1
            bucket[provider.value if provider else "email"] += 1

        return [
            RegistrationDay(
                registration_date=day,
                total_users=counts["total"],
                email_users=counts["email"],
                google_users=counts[AuthProvider.GOOGLE.value],
                facebook_users=counts[AuthProvider.FACEBOOK.value],
                apple_users=counts[AuthProvider.APPLE.value],
            )
            for day, counts in sorted(buckets.items(), reverse=True)
        ]


user_service = UserService()
