"""
Form and Row Parsing - Typed Records at the Boundary

Form state keeps numbers as strings and datastore rows arrive as plain
dicts. Everything is coerced here, once, into ListingRecord/CriteriaRecord.
Malformed values are rejected with InvalidInput rather than coerced to zero
or dropped, so a typo can never widen a search.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Optional

from core.matching.errors import InvalidInput
from core.models import (
    AgentPreference,
    Contact,
    CoverageArea,
    CriteriaRecord,
    ListingRecord,
    ListingStatus,
    PropertyType,
)


# =============================================================================
# Field aliases (camelCase hot-sheet JSON, snake_case table rows)
# =============================================================================

CRITERIA_FIELDS: dict[str, tuple[str, ...]] = {
    "id": ("id",),
    "property_types": ("propertyTypes", "property_types"),
    "property_type": ("propertyType", "property_type"),
    "statuses": ("statuses",),
    "state": ("state",),
    "city": ("city",),
    "cities": ("cities",),
    "zip_code": ("zipCode", "zip_code"),
    "min_price": ("minPrice", "min_price"),
    "max_price": ("maxPrice", "max_price"),
    "bedrooms": ("bedrooms", "minBedrooms", "min_bedrooms"),
    "bathrooms": ("bathrooms", "minBathrooms", "min_bathrooms"),
    "min_sqft": ("minSqft", "min_sqft"),
    "max_sqft": ("maxSqft", "max_sqft"),
}

LISTING_FIELDS: dict[str, tuple[str, ...]] = {
    "id": ("id", "listing_id", "listingId"),
    "property_type": ("property_type", "propertyType"),
    "state": ("state",),
    "city": ("city",),
    "price": ("price",),
    "bedrooms": ("bedrooms",),
    "bathrooms": ("bathrooms",),
    "square_feet": ("square_feet", "squareFeet"),
    "zip_code": ("zip_code", "zipCode"),
    "status": ("status",),
    "address": ("address",),
}

AGENT_FIELDS: dict[str, tuple[str, ...]] = {
    "id": ("agent_id", "user_id", "id"),
    "coverage": ("coverage_areas", "coverageAreas", "coverage"),
    "min_price": ("min_price", "minPrice"),
    "max_price": ("max_price", "maxPrice"),
    "enabled": ("buyer_need", "receive_buyer_alerts", "enabled"),
}

# Keys that may hold the contact for a record. "profiles" is the shape of a
# joined submitter row.
CONTACT_KEYS = ("contact", "profiles", "clients", "agent_profiles")

# Hot sheet rows keep their filters in a nested object under this key.
NESTED_CRITERIA_KEY = "criteria"


# =============================================================================
# Public API
# =============================================================================


def parse_criteria(data: dict[str, Any]) -> CriteriaRecord:
    """
    Build a CriteriaRecord from hot-sheet criteria or a buyer-need row.

    Empty strings and None mean "no constraint". Every malformed field is
    reported, not just the first. A hot sheet row's filters are read from
    its nested "criteria" object; its id and contact stay on the row.

    Args:
        data: Raw criteria dictionary

    Returns:
        Typed CriteriaRecord

    Raises:
        InvalidInput: if any field is malformed, or the row carries a
            nested object that is not a known filter or contact holder
    """
    if not isinstance(data, dict):
        raise InvalidInput(f"Criteria must be an object, got {type(data).__name__}")

    errors: list[str] = []
    filters = _criteria_filters(data, errors)
    raw = _pick(filters, CRITERIA_FIELDS)

    record_id = _parse_id(data["id"] if "id" in data else raw["id"])

    min_price = _parse_number(raw["min_price"], "min_price", errors)
    max_price = _parse_number(raw["max_price"], "max_price", errors)
    min_sqft = _parse_number(raw["min_sqft"], "min_sqft", errors, integer=True)
    max_sqft = _parse_number(raw["max_sqft"], "max_sqft", errors, integer=True)

    if min_price is not None and max_price is not None and max_price < min_price:
        errors.append("max_price must be >= min_price")
    if min_sqft is not None and max_sqft is not None and max_sqft < min_sqft:
        errors.append("max_sqft must be >= min_sqft")

    record_kwargs = dict(
        id=record_id,
        property_types=_parse_enum_set(raw["property_types"], PropertyType, "property_types", errors),
        property_type=_parse_enum(raw["property_type"], PropertyType, "property_type", errors),
        statuses=_parse_enum_set(raw["statuses"], ListingStatus, "statuses", errors),
        state=_parse_text(raw["state"], "state", errors),
        city=_parse_text(raw["city"], "city", errors),
        cities=_parse_text_list(raw["cities"], "cities", errors),
        zip_code=_parse_text(raw["zip_code"], "zip_code", errors),
        min_price=min_price,
        max_price=max_price,
        bedrooms=_parse_number(raw["bedrooms"], "bedrooms", errors, integer=True),
        bathrooms=_parse_number(raw["bathrooms"], "bathrooms", errors),
        min_sqft=min_sqft,
        max_sqft=max_sqft,
        contact=_parse_contact(data, errors),
    )

    if errors:
        raise InvalidInput(
            f"Criteria {record_id or '<unsaved>'} is invalid: {'; '.join(errors)}",
            errors=errors,
            record_id=record_id,
        )

    return CriteriaRecord(**record_kwargs)


def parse_listing(row: dict[str, Any]) -> ListingRecord:
    """
    Build a ListingRecord from a datastore listing row.

    Args:
        row: Raw listing dictionary

    Returns:
        Typed ListingRecord

    Raises:
        InvalidInput: if price is missing or any field is malformed
    """
    if not isinstance(row, dict):
        raise InvalidInput(f"Listing must be an object, got {type(row).__name__}")

    raw = _pick(row, LISTING_FIELDS)
    errors: list[str] = []

    record_id = _parse_id(raw["id"])

    price = _parse_number(raw["price"], "price", errors)
    if price is None and not errors:
        errors.append("price is required")

    record_kwargs = dict(
        id=record_id,
        property_type=_parse_enum(raw["property_type"], PropertyType, "property_type", errors),
        state=_parse_text(raw["state"], "state", errors) or "",
        city=_parse_text(raw["city"], "city", errors) or "",
        price=price,
        bedrooms=_parse_number(raw["bedrooms"], "bedrooms", errors, integer=True),
        bathrooms=_parse_number(raw["bathrooms"], "bathrooms", errors),
        square_feet=_parse_number(raw["square_feet"], "square_feet", errors, integer=True),
        zip_code=_parse_text(raw["zip_code"], "zip_code", errors),
        status=_parse_enum(raw["status"], ListingStatus, "status", errors),
        address=_parse_text(raw["address"], "address", errors) or "",
    )

    if errors:
        raise InvalidInput(
            f"Listing {record_id or '<unsaved>'} is invalid: {'; '.join(errors)}",
            errors=errors,
            record_id=record_id,
        )

    return ListingRecord(**record_kwargs)


def parse_agent_preference(row: dict[str, Any]) -> AgentPreference:
    """
    Build an AgentPreference from a notification preference row.

    Coverage areas may be {"state", "city"} objects or bare state codes.
    A row without the enabled flag is treated as opted in.

    Raises:
        InvalidInput: if any field is malformed
    """
    if not isinstance(row, dict):
        raise InvalidInput(f"Agent preference must be an object, got {type(row).__name__}")

    raw = _pick(row, AGENT_FIELDS)
    errors: list[str] = []

    record_id = _parse_id(raw["id"])

    min_price = _parse_number(raw["min_price"], "min_price", errors)
    max_price = _parse_number(raw["max_price"], "max_price", errors)
    if min_price is not None and max_price is not None and max_price < min_price:
        errors.append("max_price must be >= min_price")

    enabled = raw["enabled"]
    if enabled is None:
        enabled = True
    elif not isinstance(enabled, bool):
        errors.append(f"enabled must be true or false, got {enabled!r}")

    record_kwargs = dict(
        id=record_id,
        coverage=_parse_coverage(raw["coverage"], errors),
        min_price=min_price,
        max_price=max_price,
        enabled=enabled,
        contact=_parse_contact(row, errors),
    )

    if errors:
        raise InvalidInput(
            f"Agent {record_id or '<unsaved>'} is invalid: {'; '.join(errors)}",
            errors=errors,
            record_id=record_id,
        )

    return AgentPreference(**record_kwargs)


def parse_many(rows: Iterable[dict[str, Any]], parser) -> tuple[list, list[InvalidInput]]:
    """
    Parse a batch, separating good records from rejected ones.

    Returns:
        (records, failures) with records in input order
    """
    records = []
    failures = []
    for row in rows:
        try:
            records.append(parser(row))
        except InvalidInput as e:
            failures.append(e)
    return records, failures


# =============================================================================
# Field parsers
# =============================================================================


def _pick(data: dict[str, Any], fields: dict[str, tuple[str, ...]]) -> dict[str, Any]:
    """Resolve each field from the first alias present in data."""
    picked = {}
    for name, aliases in fields.items():
        picked[name] = None
        for alias in aliases:
            if alias in data:
                picked[name] = data[alias]
                break
    return picked


def _criteria_filters(data: dict[str, Any], errors: list[str]) -> dict[str, Any]:
    """
    The dict holding a criteria record's filter fields.

    Any other nested object is reported, since filters hidden in it would
    otherwise be dropped and the record would match every listing.
    """
    nested = data.get(NESTED_CRITERIA_KEY)
    if nested is not None and not isinstance(nested, dict):
        raise InvalidInput(
            f"criteria must be an object, got {type(nested).__name__}",
            record_id=_parse_id(data.get("id")),
        )

    holders = set(CONTACT_KEYS) | {NESTED_CRITERIA_KEY}
    unknown = [key for key, value in data.items() if isinstance(value, dict) and key not in holders]
    if nested is not None:
        unknown.extend(
            f"{NESTED_CRITERIA_KEY}.{key}" for key, value in nested.items() if isinstance(value, dict)
        )
    for key in unknown:
        errors.append(f"Unrecognised nested object: {key}")

    return nested if nested is not None else data


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_id(value: Any) -> Optional[str]:
    if _is_empty(value):
        return None
    return str(value).strip()


def _parse_number(
    value: Any,
    field_name: str,
    errors: list[str],
    integer: bool = False,
) -> Optional[float]:
    """
    Parse an optional non-negative number.

    Strings may carry a currency symbol and thousands separators
    ("$450,000"). Integer fields reject fractional values.
    """
    if _is_empty(value):
        return None

    if isinstance(value, bool):
        errors.append(f"{field_name} must be a number, got {value!r}")
        return None

    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        cleaned = value.strip().replace(",", "").lstrip("$").strip()
        try:
            number = float(cleaned)
        except ValueError:
            errors.append(f"{field_name} must be a valid number: {value!r}")
            return None
    else:
        errors.append(f"{field_name} must be a number, got {value!r}")
        return None

    if not math.isfinite(number):
        errors.append(f"{field_name} must be a finite number: {value!r}")
        return None
    if number < 0:
        errors.append(f"{field_name} cannot be negative")
        return None

    if integer:
        if number != int(number):
            errors.append(f"{field_name} must be a whole number: {value!r}")
            return None
        return int(number)

    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def _parse_text(value: Any, field_name: str, errors: list[str]) -> Optional[str]:
    if _is_empty(value):
        return None
    if not isinstance(value, str):
        errors.append(f"{field_name} must be text, got {value!r}")
        return None
    return value.strip()


def _parse_text_list(value: Any, field_name: str, errors: list[str]) -> Optional[tuple[str, ...]]:
    if value is None:
        return None
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        errors.append(f"{field_name} must be a list of text")
        return None
    cleaned = []
    for item in value:
        text = _parse_text(item, field_name, errors)
        if text:
            cleaned.append(text)
    return tuple(cleaned) or None


def _parse_enum(value: Any, enum_type, field_name: str, errors: list[str]):
    if _is_empty(value):
        return None
    if isinstance(value, enum_type):
        return value
    if not isinstance(value, str):
        errors.append(f"Invalid {field_name}: {value!r}")
        return None
    member = enum_type.from_string(value)
    if member is None:
        errors.append(f"Invalid {field_name}: {value}")
    return member


def _parse_enum_set(value: Any, enum_type, field_name: str, errors: list[str]):
    if value is None:
        return None
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple, set, frozenset)):
        errors.append(f"{field_name} must be a list")
        return None
    members = set()
    for item in value:
        member = _parse_enum(item, enum_type, field_name, errors)
        if member is not None:
            members.add(member)
    return frozenset(members) or None


def _parse_coverage(value: Any, errors: list[str]) -> tuple[CoverageArea, ...]:
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        errors.append("coverage_areas must be a list")
        return ()
    areas = []
    for item in value:
        if isinstance(item, str):
            item = {"state": item}
        if not isinstance(item, dict):
            errors.append(f"Invalid coverage area: {item!r}")
            continue
        state = _parse_text(item.get("state"), "coverage state", errors)
        city = _parse_text(item.get("city"), "coverage city", errors)
        if state is None:
            errors.append(f"Coverage area needs a state: {item!r}")
            continue
        areas.append(CoverageArea(state=state, city=city))
    return tuple(areas)


def _parse_contact(data: dict[str, Any], errors: list[str]) -> Contact:
    """Contact from a nested contact/profile object, or top-level fields."""
    source = data
    for key in CONTACT_KEYS:
        if isinstance(data.get(key), dict):
            source = data[key]
            break

    return Contact(
        email=_parse_text(source.get("email"), "email", errors) or "",
        first_name=_parse_text(source.get("first_name"), "first_name", errors) or "",
        last_name=_parse_text(source.get("last_name"), "last_name", errors) or "",
    )
