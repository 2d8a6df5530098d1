from app.models.enums import Amenity
from app.models.user import User, UserRole, AuthProvider
from app.models.property import Property, PropertyAmenity, PropertyType, ListingType
from app.models.favorite import Favorite

__all__ = [
    "Amenity",
    "User",
    "UserRole",
    "AuthProvider",
    "Property",
    "PropertyAmenity",
    "PropertyType",
    "ListingType",
    "Favorite",
]
