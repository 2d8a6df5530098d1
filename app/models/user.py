from sqlalchemy import Column, String, Boolean, DateTime, Uuid, UniqueConstraint, Enum as SQLEnum
import uuid

from app.core.database import Base
from app.models.enums import VocabularyEnum, values_of
from app.models.property import utcnow


class UserRole(VocabularyEnum):
    """User role enumeration"""
    USER = "user"
    AGENT = "agent"
    ADMIN = "admin"


class AuthProvider(VocabularyEnum):
    """Federated identity providers accepted by social login"""
    GOOGLE = "google"
    FACEBOOK = "facebook"
    APPLE = "apple"


class User(Base):
    """User model for authentication and profile"""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)

    # Profile
    name = Column(String(150), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)

    # Authentication (no hash for social-only accounts)
    hashed_password = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Federated identity
    provider = Column(SQLEnum(AuthProvider, name="authprovider", values_callable=values_of), nullable=True)
    provider_id = Column(String(255), nullable=True)

    # Role
    role = Column(
        SQLEnum(UserRole, name="userrole", values_callable=values_of),
        default=UserRole.USER,
        nullable=False,
        index=True
    )

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint('provider', 'provider_id', name='uq_user_provider_identity'),
    )

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"

    @property
    def auth_method(self) -> str:
        """'email' for password accounts, otherwise the provider name"""
        return self.provider.value if self.provider else "email"
