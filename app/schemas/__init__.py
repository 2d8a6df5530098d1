from app.schemas.user import (
    UserCreate,
    UserLogin,
    UserUpdate,
    AdminUserUpdate,
    UserResponse,
    SocialLoginRequest,
    SocialLoginResponse,
    PasswordChange,
    Token,
    RefreshTokenRequest,
    Message
)
from app.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyRecord,
    PropertyResponse,
    PropertySearchResponse
)
from app.schemas.search import SearchCriteria, SortOrder

__all__ = [
    "UserCreate",
    "UserLogin",
    "UserUpdate",
    "AdminUserUpdate",
    "UserResponse",
    "SocialLoginRequest",
    "SocialLoginResponse",
    "PasswordChange",
    "Token",
    "RefreshTokenRequest",
    "Message",
    "PropertyCreate",
    "PropertyUpdate",
    "PropertyRecord",
    "PropertyResponse",
    "PropertySearchResponse",
    "SearchCriteria",
    "SortOrder",
]
