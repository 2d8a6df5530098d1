from sqlalchemy import Column, DateTime, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
import uuid

from app.core.database import Base
from app.models.property import utcnow


class Favorite(Base):
    """User's favorite properties"""
    __tablename__ = "favorites"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    property_id = Column(Uuid, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    property = relationship("Property", foreign_keys=[property_id], lazy="selectin")

    # Prevent duplicate favorites
    __table_args__ = (
        UniqueConstraint('user_id', 'property_id', name='uq_user_property_favorite'),
    )

    def __repr__(self):
        return f"<Favorite user={self.user_id} property={self.property_id}>"
