"""
Canonical search criteria

SearchCriteria is the one criteria shape accepted by every search caller:
the HTTP search endpoint and in-process callers both build it through
SearchCriteria.from_query() from a flat key/value map.

Value rules:
    * a key that is missing, None, or an empty string imposes no constraint
    * bedrooms/bathrooms are tri-state: unset, "any" (explicitly no
      constraint), or a count; "3" and "3+" both mean "at least 3"
    * 0 is a real value, never a synonym for unset
    * anything that cannot be interpreted rejects the whole call
"""
import enum
import math
import re
from decimal import Decimal
from typing import Any, Dict, FrozenSet, Iterable, Literal, Mapping, Optional, Union

from pydantic import BaseModel

from app.core.exceptions import InvalidSearchQueryException
from app.models.enums import Amenity, normalize_token
from app.models.property import PropertyType, ListingType

ANY = "any"

CountBound = Union[Literal["any"], int]

_COUNT_RE = re.compile(r"^(\d+)\s*\+?$")


class SortOrder(str, enum.Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"


# Query-string key -> SearchCriteria attribute
QUERY_KEYS = {
    "location": "location",
    "state": "state",
    "area": "area",
    "propertyType": "property_type",
    "status": "status",
    "minPrice": "min_price",
    "maxPrice": "max_price",
    "bedrooms": "bedrooms",
    "bathrooms": "bathrooms",
    "amenities": "amenities",
    "sortBy": "sort_by",
}
ATTRIBUTE_KEYS = {attr: key for key, attr in QUERY_KEYS.items()}


def _is_unset(raw: Any) -> bool:
    if raw is None:
        return True
    if isinstance(raw, str) and not raw.strip():
        return True
    if isinstance(raw, (list, tuple, set, frozenset)) and not raw:
        return True
    return False


def _parse_text(key: str, raw: Any) -> Optional[str]:
    if _is_unset(raw):
        return None
    if not isinstance(raw, str):
        raise InvalidSearchQueryException(f"{key} must be text", field=key)
    return raw.strip()


def _parse_number(key: str, raw: Any) -> Optional[float]:
    if _is_unset(raw):
        return None
    if isinstance(raw, bool):
        raise InvalidSearchQueryException(f"{key} must be a number", field=key)
    if isinstance(raw, (int, float, Decimal)):
        value = float(raw)
    elif isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError:
            raise InvalidSearchQueryException(f"{key} must be a number, got '{raw}'", field=key)
    else:
        raise InvalidSearchQueryException(f"{key} must be a number", field=key)

    if not math.isfinite(value):
        raise InvalidSearchQueryException(f"{key} must be a finite number", field=key)
    if value < 0:
        raise InvalidSearchQueryException(f"{key} cannot be negative", field=key)
    return value


def _parse_count(key: str, raw: Any) -> Optional[CountBound]:
    if _is_unset(raw):
        return None
    if isinstance(raw, bool):
        raise InvalidSearchQueryException(f"{key} must be a count", field=key)
    if isinstance(raw, int):
        if raw < 0:
            raise InvalidSearchQueryException(f"{key} cannot be negative", field=key)
        return raw
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text == ANY:
            return ANY
        match = _COUNT_RE.match(text)
        if match:
            try:
                return int(match.group(1))
            except ValueError:
                raise InvalidSearchQueryException(f"{key} is too large", field=key)
    raise InvalidSearchQueryException(
        f"{key} must be a whole number, 'N+' or 'any', got '{raw}'",
        field=key
    )


def _parse_vocabulary(key: str, raw: Any, enum_cls):
    if _is_unset(raw):
        return None
    try:
        return enum_cls.parse(raw)
    except ValueError:
        raise InvalidSearchQueryException(f"unknown {key} '{raw}'", field=key)


def _split_tags(raw: Any) -> Iterable[str]:
    items = [raw] if isinstance(raw, str) else raw
    if not isinstance(items, (list, tuple, set, frozenset)):
        raise InvalidSearchQueryException("amenities must be a list or comma-separated text", field="amenities")
    for item in items:
        if isinstance(item, Amenity):
            yield item.value
            continue
        if not isinstance(item, str):
            raise InvalidSearchQueryException(f"unknown amenity '{item}'", field="amenities")
        for part in item.split(","):
            if part.strip():
                yield part


def _parse_amenities(raw: Any) -> FrozenSet[Amenity]:
    if _is_unset(raw):
        return frozenset()
    tags = set()
    for tag in _split_tags(raw):
        try:
            tags.add(Amenity.parse(tag))
        except ValueError:
            raise InvalidSearchQueryException(f"unknown amenity '{tag.strip()}'", field="amenities")
    return frozenset(tags)


def _parse_sort(raw: Any) -> SortOrder:
    if _is_unset(raw):
        return SortOrder.NEWEST
    try:
        return SortOrder(normalize_token(str(raw)))
    except ValueError:
        options = ", ".join(order.value for order in SortOrder)
        raise InvalidSearchQueryException(f"sortBy must be one of: {options}", field="sortBy")


class SearchCriteria(BaseModel):
    """Parsed, validated filter constraints (logical AND across fields)"""
    location: Optional[str] = None
    state: Optional[str] = None
    area: Optional[str] = None
    property_type: Optional[PropertyType] = None
    status: Optional[ListingType] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    bedrooms: Optional[CountBound] = None
    bathrooms: Optional[CountBound] = None
    amenities: FrozenSet[Amenity] = frozenset()
    sort_by: SortOrder = SortOrder.NEWEST

    class Config:
        frozen = True

    @classmethod
    def from_query(cls, params: Mapping[str, Any]) -> "SearchCriteria":
        """
        Build criteria from a flat key/value map

        Args:
            params: query-string shaped mapping using the canonical keys
                (location, state, area, propertyType, status, minPrice,
                maxPrice, bedrooms, bathrooms, amenities, sortBy)

        Returns:
            SearchCriteria

        Raises:
            InvalidSearchQueryException: unknown key or uninterpretable value
        """
        unknown = sorted(set(params) - set(QUERY_KEYS))
        if unknown:
            raise InvalidSearchQueryException(
                f"unsupported filter(s): {', '.join(unknown)}",
                field=unknown[0]
            )

        min_price = _parse_number("minPrice", params.get("minPrice"))
        max_price = _parse_number("maxPrice", params.get("maxPrice"))
        if min_price is not None and max_price is not None and min_price > max_price:
            raise InvalidSearchQueryException("minPrice cannot exceed maxPrice", field="minPrice")

        return cls(
            location=_parse_text("location", params.get("location")),
            state=_parse_text("state", params.get("state")),
            area=_parse_text("area", params.get("area")),
            property_type=_parse_vocabulary("propertyType", params.get("propertyType"), PropertyType),
            status=_parse_vocabulary("status", params.get("status"), ListingType),
            min_price=min_price,
            max_price=max_price,
            bedrooms=_parse_count("bedrooms", params.get("bedrooms")),
            bathrooms=_parse_count("bathrooms", params.get("bathrooms")),
            amenities=_parse_amenities(params.get("amenities")),
            sort_by=_parse_sort(params.get("sortBy")),
        )

    def active_filters(self) -> Dict[str, Any]:
        """Set criteria keyed by their query-string names, JSON friendly"""
        active = {}
        for attr, key in ATTRIBUTE_KEYS.items():
            if attr == "sort_by":
                continue
            value = getattr(self, attr)
            if value is None or value == frozenset():
                continue
            if isinstance(value, frozenset):
                value = sorted(tag.value for tag in value)
            elif isinstance(value, enum.Enum):
                value = value.value
            active[key] = value
        return active
