from pydantic import BaseModel, Field, validator, model_validator
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone
from uuid import UUID, uuid4
from app.models.enums import Amenity
from app.models.property import INTEGER_MAX, PropertyType, ListingType


def _parse_amenity_list(v):
    if v is None:
        return []
    if isinstance(v, str):
        v = [part for part in v.split(",") if part.strip()]
    parsed = []
    for item in v:
        amenity = Amenity.parse(item)
        if amenity not in parsed:
            parsed.append(amenity)
    return parsed


# Full record: every field must be supplied (PUT replaces the whole listing)
class PropertyFields(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str]
    property_type: PropertyType
    listing_type: ListingType
    price: int = Field(..., gt=0, le=INTEGER_MAX, description="Whole-number price, currency agnostic")
    location: str = Field(..., min_length=2, max_length=255)
    state: Optional[str] = Field(..., max_length=100)
    area: Optional[str] = Field(..., max_length=100)
    bedrooms: int = Field(..., ge=0, le=INTEGER_MAX)
    bathrooms: int = Field(..., ge=0, le=INTEGER_MAX)
    floor_area: int = Field(..., gt=0, le=INTEGER_MAX, description="Floor area in square meters")
    image_url: Optional[str] = Field(..., max_length=500)
    is_featured: bool
    amenities: List[Amenity]

    @validator('property_type', pre=True)
    def parse_property_type(cls, v):
        return PropertyType.parse(v)

    @validator('listing_type', pre=True)
    def parse_listing_type(cls, v):
        return ListingType.parse(v)

    @validator('amenities', pre=True)
    def parse_amenities(cls, v):
        return _parse_amenity_list(v)

    @model_validator(mode="before")
    @classmethod
    def zero_rooms_for_non_residential(cls, data):
        # Land, commercial and office listings never carry room counts
        if not isinstance(data, dict) or data.get("property_type") is None:
            return data
        try:
            property_type = PropertyType.parse(data["property_type"])
        except ValueError:
            return data  # reported by the field validator
        if not property_type.has_rooms:
            data = {**data, "bedrooms": 0, "bathrooms": 0}
        return data


# Request schemas
class PropertyCreate(PropertyFields):
    """Schema for creating a property"""
    description: Optional[str] = None
    state: Optional[str] = Field(None, max_length=100)
    area: Optional[str] = Field(None, max_length=100)
    bedrooms: int = Field(0, ge=0, le=INTEGER_MAX)
    bathrooms: int = Field(0, ge=0, le=INTEGER_MAX)
    image_url: Optional[str] = Field(None, max_length=500)
    is_featured: bool = False
    amenities: List[Amenity] = Field(default_factory=list)


class PropertyUpdate(PropertyFields):
    """Schema for replacing a property (all fields required)"""


class PropertyRecord(PropertyCreate):
    """
    In-memory listing with the same attribute names as the Property model

    Used with InMemoryPropertyRepository.
    """
    id: UUID = Field(default_factory=uuid4)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Config:
        frozen = True


# Response schemas
class PropertyResponse(BaseModel):
    """Full property response"""
    id: UUID
    title: str
    description: Optional[str] = None
    property_type: PropertyType
    listing_type: ListingType
    price: int
    location: str
    state: Optional[str] = None
    area: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    floor_area: int
    image_url: Optional[str] = None
    is_featured: bool = False
    amenities: List[Amenity] = Field(default_factory=list)
    is_favorite: bool = False
    created_at: datetime

    class Config:
        from_attributes = True

    @model_validator(mode="after")
    def hide_rooms_for_non_residential(self):
        if not self.property_type.has_rooms:
            self.bedrooms = None
            self.bathrooms = None
        return self


class PropertyListResponse(BaseModel):
    """Paginated property list"""
    items: List[PropertyResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class PropertySearchResponse(PropertyListResponse):
    """Paginated search results with the filters that were applied"""
    filters_applied: Dict[str, Any] = Field(default_factory=dict, description="Active filters")
    sort_by: str = "newest"
