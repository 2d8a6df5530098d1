"""
Closed vocabularies shared by models, schemas and the search filter

Every vocabulary parses case-insensitively from its value, its display
label ("Swimming Pool") or a registered alias ("pool").

Extending a vocabulary:
    1. add the member (value in snake_case)
    2. register any legacy spellings in the matching *_ALIASES dict
    3. add an Alembic migration that extends the SQL enum type
"""
import enum
import re
from typing import Dict


def normalize_token(value: str) -> str:
    """'Swimming Pool' / 'swimming-pool' / ' SWIMMING_POOL ' -> 'swimming_pool'"""
    return re.sub(r"[\s\-]+", "_", value.strip().lower())


class VocabularyEnum(str, enum.Enum):
    """str enum with lenient parsing of labels and aliases"""

    @classmethod
    def aliases(cls) -> Dict[str, str]:
        return {}

    @classmethod
    def parse(cls, raw):
        if isinstance(raw, cls):
            return raw
        key = normalize_token(str(raw))
        for member in cls:
            if member.value == key:
                return member
        alias = cls.aliases().get(key)
        if alias is not None:
            return cls(alias)
        raise ValueError(f"'{raw}' is not a valid {cls.__name__}")

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


AMENITY_ALIASES = {
    "pool": "swimming_pool",
    "ac": "air_conditioning",
    "generator": "backup_generator",
    "lift": "elevator",
    "gated": "gated_estate",
}


class Amenity(VocabularyEnum):
    """Amenity tags a listing can carry"""
    SWIMMING_POOL = "swimming_pool"
    GYM = "gym"
    SECURITY = "security"
    PARKING = "parking"
    BALCONY = "balcony"
    GARDEN = "garden"
    AIR_CONDITIONING = "air_conditioning"
    FURNISHED = "furnished"
    ELEVATOR = "elevator"
    CCTV = "cctv"
    BACKUP_GENERATOR = "backup_generator"
    BOREHOLE = "borehole"
    SERVICED = "serviced"
    WATERFRONT = "waterfront"
    GATED_ESTATE = "gated_estate"

    @classmethod
    def aliases(cls) -> Dict[str, str]:
        return AMENITY_ALIASES


def values_of(enum_cls) -> list:
    """values_callable for SQLAlchemy Enum columns (store values, not names)"""
    return [member.value for member in enum_cls]
