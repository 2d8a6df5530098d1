from pydantic import BaseModel, EmailStr, Field, validator
from typing import List, Optional
from datetime import date, datetime
from uuid import UUID
from app.models.user import UserRole, AuthProvider


# Base schemas
class UserBase(BaseModel):
    """Base user schema with common fields"""
    name: str = Field(..., min_length=1, max_length=150)
    email: EmailStr


# Request schemas
class UserCreate(UserBase):
    """Schema for user registration"""
    password: str = Field(..., min_length=8, max_length=128)
    password_confirm: str = Field(..., min_length=8, max_length=128)
    role: UserRole = UserRole.USER

    @validator('password_confirm')
    def passwords_match(cls, v, values, **kwargs):
        if 'password' in values and v != values['password']:
            raise ValueError('Passwords do not match')
        return v

    @validator('password')
    def password_strength(cls, v):
        if not any(char.isdigit() for char in v):
            raise ValueError('Password must contain at least one digit')
        if not any(char.isupper() for char in v):
            raise ValueError('Password must contain at least one uppercase letter')
        if not any(char.islower() for char in v):
            raise ValueError('Password must contain at least one lowercase letter')
        return v

    @validator('role', pre=True)
    def no_self_service_admin(cls, v):
        role = UserRole.parse(v)
        if role == UserRole.ADMIN:
            raise ValueError('Admin accounts cannot be self-registered')
        return role


class UserLogin(BaseModel):
    """Schema for user login"""
    email: EmailStr
    password: str


class SocialLoginRequest(BaseModel):
    """Identity asserted by a federated provider"""
    provider: AuthProvider
    provider_id: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=150)

    @validator('provider', pre=True)
    def parse_provider(cls, v):
        return AuthProvider.parse(v)


class UserUpdate(BaseModel):
    """Schema for updating own profile"""
    name: str = Field(..., min_length=1, max_length=150)


class AdminUserUpdate(UserBase):
    """Schema for replacing a user's profile (admin)"""
    role: UserRole

    @validator('role', pre=True)
    def parse_role(cls, v):
        return UserRole.parse(v)


class PasswordChange(BaseModel):
    """Schema for password change"""
    current_password: str
    new_password: str = Field(..., min_length=8, max_length=128)
    new_password_confirm: str = Field(..., min_length=8, max_length=128)

    @validator('new_password_confirm')
    def passwords_match(cls, v, values, **kwargs):
        if 'new_password' in values and v != values['new_password']:
            raise ValueError('Passwords do not match')
        return v


# Response schemas
class UserResponse(UserBase):
    """Schema for user response (never includes the credential)"""
    id: UUID
    role: UserRole
    provider: Optional[AuthProvider] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    items: List[UserResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class RegistrationDay(BaseModel):
    """Registrations on one day, split by sign-up method"""
    registration_date: date
    total_users: int
    email_users: int
    google_users: int
    facebook_users: int
    apple_users: int


class RegistrationStats(BaseModel):
    days: List[RegistrationDay]


# Token schemas
class Token(BaseModel):
    """JWT token response"""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class SocialLoginResponse(Token):
    """Tokens plus the account the social identity resolved to"""
    user: UserResponse
    created: bool


class RefreshTokenRequest(BaseModel):
    """Request schema for token refresh"""
    refresh_token: str


# Message schemas
class Message(BaseModel):
    """Generic message response"""
    message: str
