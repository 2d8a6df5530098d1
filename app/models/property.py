from datetime import datetime, timezone
from typing import Iterable, List

from sqlalchemy import (
    Column, String, Boolean, DateTime, Integer, Text, ForeignKey, Uuid,
    UniqueConstraint, Enum as SQLEnum
)
from sqlalchemy.orm import relationship
import uuid

from app.core.database import Base
from app.models.enums import Amenity, VocabularyEnum, values_of


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Largest value an Integer column holds on every supported database
INTEGER_MAX = 2_147_483_647


PROPERTY_TYPE_ALIASES = {
    "commercial_property": "commercial",
    "office_space": "office",
    "town_house": "townhouse",
}

LISTING_TYPE_ALIASES = {
    "for_sale": "sale",
    "for_rent": "rent",
}


class PropertyType(VocabularyEnum):
    HOUSE = "house"
    APARTMENT = "apartment"
    CONDO = "condo"
    TOWNHOUSE = "townhouse"
    VILLA = "villa"
    DUPLEX = "duplex"
    STUDIO = "studio"
    FLAT = "flat"
    LAND = "land"
    COMMERCIAL = "commercial"
    OFFICE = "office"

    @classmethod
    def aliases(cls):
        return PROPERTY_TYPE_ALIASES

    @property
    def has_rooms(self) -> bool:
        """Bedroom/bathroom counts are meaningless for these categories"""
        return self not in NON_RESIDENTIAL_TYPES


NON_RESIDENTIAL_TYPES = frozenset({
    PropertyType.LAND,
    PropertyType.COMMERCIAL,
    PropertyType.OFFICE,
})


class ListingType(VocabularyEnum):
    SALE = "sale"
    RENT = "rent"

    @classmethod
    def aliases(cls):
        return LISTING_TYPE_ALIASES

    @property
    def label(self) -> str:
        return f"For {self.value.title()}"


class Property(Base):
    """Property listing model"""
    __tablename__ = "properties"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)

    # Basic Info
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    property_type = Column(
        SQLEnum(PropertyType, name="propertytype", values_callable=values_of),
        nullable=False,
        index=True
    )
    listing_type = Column(
        SQLEnum(ListingType, name="listingtype", values_callable=values_of),
        nullable=False,
        index=True
    )

    # Whole-number price, currency agnostic
    price = Column(Integer, nullable=False, index=True)

    # Details
    bedrooms = Column(Integer, default=0, nullable=False)
    bathrooms = Column(Integer, default=0, nullable=False)
    floor_area = Column(Integer, nullable=False)  # square meters

    # Location
    location = Column(String(255), nullable=False)
    state = Column(String(100), nullable=True, index=True)
    area = Column(String(100), nullable=True, index=True)

    # Media & promotion
    image_url = Column(String(500), nullable=True)
    is_featured = Column(Boolean, default=False, nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    amenity_links = relationship(
        "PropertyAmenity",
        back_populates="property",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Property {self.title} ({self.location})>"

    @property
    def amenities(self) -> List[Amenity]:
        """Amenity tags in declaration order"""
        tags = {link.amenity for link in self.amenity_links}
        return [amenity for amenity in Amenity if amenity in tags]

    def set_amenities(self, amenities: Iterable[Amenity]) -> None:
        """
        Replace the amenity set

        Existing rows for retained tags are kept so the unique
        (property_id, amenity) pair is never inserted twice in one flush.
        """
        wanted = set(amenities)
        self.amenity_links = [
            link for link in self.amenity_links if link.amenity in wanted
        ]
        present = {link.amenity for link in self.amenity_links}
        for amenity in Amenity:
            if amenity in wanted and amenity not in present:
                self.amenity_links.append(PropertyAmenity(amenity=amenity))


class PropertyAmenity(Base):
    """One amenity tag attached to a property"""
    __tablename__ = "property_amenities"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    property_id = Column(
        Uuid,
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    amenity = Column(
        SQLEnum(Amenity, name="amenity", values_callable=values_of),
        nullable=False,
        index=True
    )

    property = relationship("Property", back_populates="amenity_links")

    __table_args__ = (
        UniqueConstraint('property_id', 'amenity', name='uq_property_amenity'),
    )

    def __repr__(self):
        return f"<PropertyAmenity {self.amenity} property={self.property_id}>"
