"""
Criteria Matcher

Decides whether one listing satisfies one criteria record:
- State (case-insensitive exact)
- City / cities (case-insensitive substring, criteria within listing)
- Zip code (exact)
- Property type (set membership, or exact match for buyer needs)
- Status (set membership)
- Price (ceiling always, floor for hot sheets only)
- Bedrooms / bathrooms (listing must have at least the requested count)
- Square footage (range)

All present constraints are AND-combined. An absent constraint never
causes a non-match.
"""

from typing import Any, Iterable, List, Optional

from core.models import (
    CriteriaRecord,
    ListingRecord,
    ListingStatus,
    Perspective,
    PropertyType,
)

from .errors import InvalidInput
from .normalize import (
    check_number,
    city_contains,
    fold_text,
    is_blank,
    normalise_zip,
    same_state,
)


# Constraint names reported by CriteriaMatcher.check
STATE = "state"
CITY = "city"
CITIES = "cities"
ZIP_CODE = "zip_code"
PROPERTY_TYPE = "property_type"
STATUS = "status"
MIN_PRICE = "min_price"
MAX_PRICE = "max_price"
BEDROOMS = "bedrooms"
BATHROOMS = "bathrooms"
MIN_SQFT = "min_sqft"
MAX_SQFT = "max_sqft"


class CriteriaMatcher:
    """
    Pure predicate over (listing, criteria) pairs.

    The perspective decides two things:
    - HOT_SHEET applies the price floor and fails a constraint the listing
      has no value for.
    - REVERSE_PROSPECT ignores the price floor (only the buyer's ceiling is
      checked), compares a buyer need's single property type exactly, and
      skips a constraint the listing has no value for.
    """

    def __init__(self, perspective: Perspective = Perspective.HOT_SHEET):
        """
        Initialize matcher.

        Args:
            perspective: Direction the match is evaluated in
        """
        if not isinstance(perspective, Perspective):
            raise TypeError(f"perspective must be a Perspective, got {perspective!r}")
        self._perspective = perspective

    @property
    def perspective(self) -> Perspective:
        return self._perspective

    def matches(self, listing: ListingRecord, criteria: CriteriaRecord) -> bool:
        """
        Return True if the listing satisfies every present constraint.

        Raises:
            InvalidInput: if either record has a structurally wrong field
        """
        return not self.check(listing, criteria)

    def check(self, listing: ListingRecord, criteria: CriteriaRecord) -> List[str]:
        """
        Evaluate every constraint and name the ones the listing fails.

        Args:
            listing: The listing being tested
            criteria: The buyer need or saved search

        Returns:
            Failed constraint names in evaluation order (empty on a match)

        Raises:
            InvalidInput: if either record has a structurally wrong field
        """
        self.validate_listing(listing)
        self.validate_criteria(criteria)

        failed = []
        for name, passed in (
            (STATE, self._check_state(listing, criteria)),
            (CITY, self._check_city(listing, criteria)),
            (CITIES, self._check_cities(listing, criteria)),
            (ZIP_CODE, self._check_zip(listing, criteria)),
            (PROPERTY_TYPE, self._check_property_type(listing, criteria)),
            (STATUS, self._check_status(listing, criteria)),
            (MIN_PRICE, self._check_min_price(listing, criteria)),
            (MAX_PRICE, self._check_max_price(listing, criteria)),
            (BEDROOMS, self._check_at_least(listing.bedrooms, criteria.bedrooms)),
            (BATHROOMS, self._check_at_least(listing.bathrooms, criteria.bathrooms)),
            (MIN_SQFT, self._check_at_least(listing.square_feet, criteria.min_sqft)),
            (MAX_SQFT, self._check_at_most(listing.square_feet, criteria.max_sqft)),
        ):
            if not passed:
                failed.append(name)
        return failed

    # =========================================================================
    # Validation
    # =========================================================================

    def validate_listing(self, listing: ListingRecord) -> None:
        """Raise InvalidInput if the listing cannot be evaluated."""
        if not isinstance(listing, ListingRecord):
            raise InvalidInput(f"Expected a ListingRecord, got {type(listing).__name__}")

        errors = [
            error for error in (
                check_number(listing.price, "price", required=True),
                check_number(listing.bedrooms, "bedrooms"),
                check_number(listing.bathrooms, "bathrooms"),
                check_number(listing.square_feet, "square_feet"),
            )
            if error
        ]
        if listing.property_type is not None and not isinstance(listing.property_type, PropertyType):
            errors.append(f"property_type must be a PropertyType, got {listing.property_type!r}")
        if listing.status is not None and not isinstance(listing.status, ListingStatus):
            errors.append(f"status must be a ListingStatus, got {listing.status!r}")
        errors.extend(_text_errors(listing, ("state", "city", "zip_code")))

        if errors:
            raise InvalidInput(
                f"Listing {listing.id or '<unsaved>'} cannot be evaluated: {'; '.join(errors)}",
                errors=errors,
                record_id=listing.id,
            )

    def validate_criteria(self, criteria: CriteriaRecord) -> None:
        """Raise InvalidInput if the criteria record cannot be evaluated."""
        if not isinstance(criteria, CriteriaRecord):
            raise InvalidInput(f"Expected a CriteriaRecord, got {type(criteria).__name__}")

        errors = [
            error for error in (
                check_number(criteria.min_price, "min_price"),
                check_number(criteria.max_price, "max_price"),
                check_number(criteria.bedrooms, "bedrooms"),
                check_number(criteria.bathrooms, "bathrooms"),
                check_number(criteria.min_sqft, "min_sqft"),
                check_number(criteria.max_sqft, "max_sqft"),
            )
            if error
        ]
        if criteria.property_type is not None and not isinstance(criteria.property_type, PropertyType):
            errors.append(f"property_type must be a PropertyType, got {criteria.property_type!r}")
        errors.extend(_member_errors(criteria.property_types, PropertyType, "property_types"))
        errors.extend(_member_errors(criteria.statuses, ListingStatus, "statuses"))
        errors.extend(_text_errors(criteria, ("state", "city", "zip_code")))
        if criteria.cities is not None:
            if isinstance(criteria.cities, str):
                errors.append("cities must be a sequence of strings, not a string")
            elif not all(isinstance(city, str) for city in criteria.cities):
                errors.append("cities must contain only strings")

        if errors:
            raise InvalidInput(
                f"Criteria {criteria.id or '<unsaved>'} cannot be evaluated: {'; '.join(errors)}",
                errors=errors,
                record_id=criteria.id,
            )

    # =========================================================================
    # Constraint checks
    # =========================================================================

    @property
    def _strict(self) -> bool:
        """Whether a listing with no value for a constrained field fails."""
        return self._perspective is Perspective.HOT_SHEET

    def _check_state(self, listing: ListingRecord, criteria: CriteriaRecord) -> bool:
        if is_blank(criteria.state):
            return True
        if is_blank(listing.state):
            return not self._strict
        return same_state(listing.state, criteria.state)

    def _check_city(self, listing: ListingRecord, criteria: CriteriaRecord) -> bool:
        if is_blank(criteria.city):
            return True
        if is_blank(listing.city):
            return not self._strict
        return city_contains(listing.city, criteria.city)

    def _check_cities(self, listing: ListingRecord, criteria: CriteriaRecord) -> bool:
        wanted = [city for city in (criteria.cities or ()) if not is_blank(city)]
        if not wanted:
            return True
        if is_blank(listing.city):
            return not self._strict
        return any(city_contains(listing.city, city) for city in wanted)

    def _check_zip(self, listing: ListingRecord, criteria: CriteriaRecord) -> bool:
        wanted = normalise_zip(criteria.zip_code)
        if not wanted:
            return True
        actual = normalise_zip(listing.zip_code)
        if not actual:
            return not self._strict
        return fold_text(actual) == fold_text(wanted)

    def _check_property_type(self, listing: ListingRecord, criteria: CriteriaRecord) -> bool:
        allowed = criteria.type_constraint(self._perspective)
        if not allowed:
            return True
        if listing.property_type is None:
            return not self._strict
        return listing.property_type in allowed

    def _check_status(self, listing: ListingRecord, criteria: CriteriaRecord) -> bool:
        if not criteria.statuses:
            return True
        if listing.status is None:
            return not self._strict
        return listing.status in criteria.statuses

    def _check_min_price(self, listing: ListingRecord, criteria: CriteriaRecord) -> bool:
        # Buyer needs only state a ceiling; the floor applies to saved searches.
        if criteria.min_price is None or self._perspective is Perspective.REVERSE_PROSPECT:
            return True
        return listing.price >= criteria.min_price

    def _check_max_price(self, listing: ListingRecord, criteria: CriteriaRecord) -> bool:
        if criteria.max_price is None:
            return True
        return listing.price <= criteria.max_price

    def _check_at_least(self, actual: Optional[float], minimum: Optional[float]) -> bool:
        """Listing value must meet the requested minimum."""
        if minimum is None:
            return True
        if actual is None:
            return not self._strict
        return actual >= minimum

    def _check_at_most(self, actual: Optional[float], maximum: Optional[float]) -> bool:
        """Listing value must not exceed the requested maximum."""
        if maximum is None:
            return True
        if actual is None:
            return not self._strict
        return actual <= maximum


def _member_errors(values: Optional[Iterable[Any]], enum_type: type, field_name: str) -> List[str]:
    """Report members of an optional collection that are not enum_type."""
    if values is None:
        return []
    if isinstance(values, (str, enum_type)):
        return [f"{field_name} must be a collection of {enum_type.__name__}"]
    bad = [value for value in values if not isinstance(value, enum_type)]
    if bad:
        return [f"{field_name} contains invalid values: {bad!r}"]
    return []


def _text_errors(record: Any, field_names: Iterable[str]) -> List[str]:
    """Report text fields holding something other than str or None."""
    errors = []
    for name in field_names:
        value = getattr(record, name)
        if value is not None and not isinstance(value, str):
            errors.append(f"{name} must be a string, got {value!r}")
    return errors
