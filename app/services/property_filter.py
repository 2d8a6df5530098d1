"""
Property Query Filter

One declarative rule table, two execution backends:

    build_predicates(criteria)  -> callables over property-shaped objects
    build_clauses(criteria)     -> SQLAlchemy boolean clauses on Property

Both are generated from FILTER_RULES so the in-memory and SQL searches
return the same listings for the same criteria. The filter only reads;
it never mutates the collection or the records it is given.
"""
import enum
import math
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Tuple

from sqlalchemy import and_, false, func, or_, select, true
from sqlalchemy.sql.elements import ColumnElement

from app.models.property import INTEGER_MAX, Property, PropertyAmenity
from app.schemas.search import ANY, SearchCriteria, SortOrder

Predicate = Callable[[Any], bool]


class MatchKind(str, enum.Enum):
    CONTAINS_ANY = "contains_any"  # case-insensitive substring of any field
    IEQUALS = "iequals"            # case-insensitive equality
    EQUALS = "equals"
    AT_LEAST = "at_least"
    AT_MOST = "at_most"
    CONTAINS_ALL = "contains_all"  # record's tag set is a superset


@dataclass(frozen=True)
class FilterRule:
    criterion: str
    match: MatchKind
    fields: Tuple[str, ...]


FILTER_RULES: Tuple[FilterRule, ...] = (
    FilterRule("location", MatchKind.CONTAINS_ANY, ("location", "state", "area", "title")),
    FilterRule("state", MatchKind.IEQUALS, ("state",)),
    FilterRule("area", MatchKind.IEQUALS, ("area",)),
    FilterRule("property_type", MatchKind.EQUALS, ("property_type",)),
    FilterRule("status", MatchKind.EQUALS, ("listing_type",)),
    FilterRule("min_price", MatchKind.AT_LEAST, ("price",)),
    FilterRule("max_price", MatchKind.AT_MOST, ("price",)),
    FilterRule("bedrooms", MatchKind.AT_LEAST, ("bedrooms",)),
    FilterRule("bathrooms", MatchKind.AT_LEAST, ("bathrooms",)),
    FilterRule("amenities", MatchKind.CONTAINS_ALL, ("amenities",)),
)

# Attribute -> (direction is descending)
SORT_KEYS = {
    SortOrder.NEWEST: ("created_at", True),
    SortOrder.OLDEST: ("created_at", False),
    SortOrder.PRICE_ASC: ("price", False),
    SortOrder.PRICE_DESC: ("price", True),
}


def active_rules(criteria: SearchCriteria) -> Iterator[Tuple[FilterRule, Any]]:
    """Rules whose criterion is set, paired with the criterion value"""
    for rule in FILTER_RULES:
        value = getattr(criteria, rule.criterion)
        if value is None or value == ANY:
            continue
        if isinstance(value, frozenset) and not value:
            continue
        yield rule, value


# ============================================================================
# IN-MEMORY BACKEND
# ============================================================================

def _text(record: Any, field: str) -> str:
    return (getattr(record, field, None) or "").lower()


def _predicate(rule: FilterRule, value: Any) -> Predicate:
    fields = rule.fields
    field = fields[0]

    if rule.match is MatchKind.CONTAINS_ANY:
        term = value.lower()
        return lambda record: any(term in _text(record, f) for f in fields)
    if rule.match is MatchKind.IEQUALS:
        target = value.lower()
        return lambda record: _text(record, field) == target
    if rule.match is MatchKind.EQUALS:
        return lambda record: getattr(record, field) == value
    if rule.match is MatchKind.AT_LEAST:
        return lambda record: getattr(record, field) >= value
    if rule.match is MatchKind.AT_MOST:
        return lambda record: getattr(record, field) <= value
    if rule.match is MatchKind.CONTAINS_ALL:
        required = frozenset(value)
        return lambda record: required.issubset(getattr(record, field))
    raise ValueError(f"Unsupported match kind: {rule.match}")


def build_predicates(criteria: SearchCriteria) -> List[Predicate]:
    return [_predicate(rule, value) for rule, value in active_rules(criteria)]


def sort_properties(properties: Iterable[Any], sort_by: SortOrder = SortOrder.NEWEST) -> List[Any]:
    """Order a copy of the records; ties fall back to id ascending"""
    field, descending = SORT_KEYS[sort_by]
    ordered = sorted(properties, key=lambda record: record.id)
    ordered.sort(key=lambda record: getattr(record, field), reverse=descending)
    return ordered


def apply_filters(properties: Iterable[Any], criteria: SearchCriteria) -> List[Any]:
    """
    Narrow a collection by every active criterion, then sort

    Args:
        properties: ORM rows or PropertyRecord objects
        criteria: parsed search criteria

    Returns:
        New list of matching records (empty when nothing matches)
    """
    results = list(properties)
    for predicate in build_predicates(criteria):
        results = [record for record in results if predicate(record)]
    return sort_properties(results, criteria.sort_by)


# ============================================================================
# SQL BACKEND
# ============================================================================

# Tag-set fields live in association tables: field -> (owner id column, tag column)
_TAG_TABLES = {
    "amenities": (PropertyAmenity.property_id, PropertyAmenity.amenity),
}


def _escape_like(term: str) -> str:
    """Make % and _ match literally, as the in-memory substring test does"""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _clause(rule: FilterRule, value: Any) -> ColumnElement:
    field = rule.fields[0]

    if rule.match is MatchKind.CONTAINS_ANY:
        pattern = f"%{_escape_like(value)}%"
        return or_(*[
            getattr(Property, f).ilike(pattern, escape="\\") for f in rule.fields
        ])
    if rule.match is MatchKind.IEQUALS:
        return func.lower(getattr(Property, field)) == value.lower()
    if rule.match is MatchKind.EQUALS:
        return getattr(Property, field) == value
    # Compared columns are integers; bind whole numbers with the same meaning.
    # Bounds past INTEGER_MAX never reach the driver.
    if rule.match is MatchKind.AT_LEAST:
        bound = math.ceil(value)
        if bound > INTEGER_MAX:
            return false()
        return getattr(Property, field) >= bound
    if rule.match is MatchKind.AT_MOST:
        bound = math.floor(value)
        if bound >= INTEGER_MAX:
            return true()
        return getattr(Property, field) <= bound
    if rule.match is MatchKind.CONTAINS_ALL:
        owner_column, tag_column = _TAG_TABLES[field]
        matching_owners = (
            select(owner_column)
            .where(tag_column.in_(list(value)))
            .group_by(owner_column)
            .having(func.count(func.distinct(tag_column)) == len(value))
        )
        return Property.id.in_(matching_owners)
    raise ValueError(f"Unsupported match kind: {rule.match}")


def build_clauses(criteria: SearchCriteria) -> List[ColumnElement]:
    return [_clause(rule, value) for rule, value in active_rules(criteria)]


def build_where(criteria: SearchCriteria):
    """Single AND-ed clause, or None when no criterion is set"""
    clauses = build_clauses(criteria)
    if not clauses:
        return None
    return and_(*clauses)


def build_ordering(sort_by: SortOrder = SortOrder.NEWEST) -> list:
    field, descending = SORT_KEYS[sort_by]
    column = getattr(Property, field)
    return [column.desc() if descending else column.asc(), Property.id.asc()]
