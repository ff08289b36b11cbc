"""
Data models for the match engine.

Listings and criteria are transient, read-only snapshots of datastore rows.
Both are frozen so a matcher can never mutate what it is handed.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple, Union

Number = Union[int, float]


class PropertyType(Enum):
    """
    Property category.

    Rows store the snake_case value; saved searches sometimes carry the
    display label instead, so both are accepted by from_string.
    """
    SINGLE_FAMILY = "single_family"
    CONDO = "condo"
    TOWNHOUSE = "townhouse"
    MULTI_FAMILY = "multi_family"
    LAND = "land"
    COMMERCIAL = "commercial"
    RESIDENTIAL_RENTAL = "residential_rental"
    COMMERCIAL_RENTAL = "commercial_rental"
    BUSINESS_OPP = "business_opp"

    @property
    def label(self) -> str:
        return _PROPERTY_TYPE_LABELS[self]

    @classmethod
    def from_string(cls, value: str) -> Optional["PropertyType"]:
        """Convert a value or display label to PropertyType, case-insensitive."""
        normalised = value.lower().strip().replace("-", "_").replace(" ", "_")
        for member in cls:
            if member.value == normalised:
                return member
        for member, label in _PROPERTY_TYPE_LABELS.items():
            if label.lower() == value.lower().strip():
                return member
        return None


_PROPERTY_TYPE_LABELS = {
    PropertyType.SINGLE_FAMILY: "Single Family",
    PropertyType.CONDO: "Condominium",
    PropertyType.TOWNHOUSE: "Townhouse",
    PropertyType.MULTI_FAMILY: "Multi Family",
    PropertyType.LAND: "Land",
    PropertyType.COMMERCIAL: "Commercial",
    PropertyType.RESIDENTIAL_RENTAL: "Residential Rental",
    PropertyType.COMMERCIAL_RENTAL: "Commercial Rental",
    PropertyType.BUSINESS_OPP: "Business Opportunity",
}


class ListingStatus(Enum):
    """
    Listing lifecycle state.

    from_string also understands the MLS short codes used by saved
    searches imported from MLS PIN (ACT, NEW, CSO, ...).
    """
    ACTIVE = "active"
    NEW = "new"
    COMING_SOON = "coming_soon"
    BACK_ON_MARKET = "back_on_market"
    PRICE_CHANGED = "price_changed"
    EXTENDED = "extended"
    REACTIVATED = "reactivated"
    UNDER_AGREEMENT = "under_agreement"
    PENDING = "pending"
    CONTINGENT = "contingent"
    SOLD = "sold"
    RENTED = "rented"
    WITHDRAWN = "withdrawn"
    TEMPORARILY_WITHDRAWN = "temporarily_withdrawn"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    DRAFT = "draft"
    OFF_MARKET = "off_market"

    @classmethod
    def from_string(cls, value: str) -> Optional["ListingStatus"]:
        """Convert a status value or MLS code to ListingStatus, case-insensitive."""
        normalised = value.lower().strip().replace("-", "_").replace(" ", "_")
        if normalised == "canceled":
            return cls.CANCELLED
        for member in cls:
            if member.value == normalised:
                return member
        code = value.upper().strip()
        for member, mls_code in _MLS_STATUS_CODES.items():
            if mls_code == code:
                return member
        return None


# WDN is shared by withdrawn and temporarily withdrawn; first entry wins.
_MLS_STATUS_CODES = {
    ListingStatus.ACTIVE: "ACT",
    ListingStatus.NEW: "NEW",
    ListingStatus.COMING_SOON: "CSO",
    ListingStatus.BACK_ON_MARKET: "BOM",
    ListingStatus.PRICE_CHANGED: "PCH",
    ListingStatus.EXTENDED: "EXT",
    ListingStatus.REACTIVATED: "REA",
    ListingStatus.UNDER_AGREEMENT: "UAG",
    ListingStatus.PENDING: "PND",
    ListingStatus.CONTINGENT: "CTG",
    ListingStatus.SOLD: "SLD",
    ListingStatus.RENTED: "RNT",
    ListingStatus.WITHDRAWN: "WDN",
    ListingStatus.TEMPORARILY_WITHDRAWN: "WDN",
    ListingStatus.EXPIRED: "EXP",
    ListingStatus.CANCELLED: "CAN",
    ListingStatus.DRAFT: "DFT",
    ListingStatus.OFF_MARKET: "OFF",
}


class Perspective(Enum):
    """
    Direction a match is evaluated in.

    HOT_SHEET: a saved search looking for listings.
    REVERSE_PROSPECT: a listing looking for buyer needs it would satisfy.
    """
    HOT_SHEET = "hot_sheet"
    REVERSE_PROSPECT = "reverse_prospect"


@dataclass(frozen=True)
class Contact:
    """Who to reach when a criteria record matches."""
    email: str = ""
    first_name: str = ""
    last_name: str = ""

    @property
    def display_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or "there"


@dataclass(frozen=True)
class ListingRecord:
    """The subset of a listing row the matcher looks at."""

    property_type: Optional[PropertyType]
    state: str
    city: str
    price: Number

    bedrooms: Optional[int] = None
    bathrooms: Optional[Number] = None
    square_feet: Optional[int] = None

    # Optional fields
    id: Optional[str] = None
    zip_code: Optional[str] = None
    status: Optional[ListingStatus] = None
    address: str = ""

    @property
    def location(self) -> str:
        """City and state for display."""
        return ", ".join(part for part in (self.city, self.state) if part)


@dataclass(frozen=True)
class CriteriaRecord:
    """
    A buyer need, hot sheet or search filter.

    Every field is optional; None (or an empty collection) means the field
    places no constraint on a listing.
    """

    property_types: Optional[FrozenSet[PropertyType]] = None
    property_type: Optional[PropertyType] = None
    statuses: Optional[FrozenSet[ListingStatus]] = None

    state: Optional[str] = None
    city: Optional[str] = None
    cities: Optional[Tuple[str, ...]] = None
    zip_code: Optional[str] = None

    min_price: Optional[Number] = None
    max_price: Optional[Number] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[Number] = None
    min_sqft: Optional[int] = None
    max_sqft: Optional[int] = None

    id: Optional[str] = None
    contact: Contact = field(default_factory=Contact)

    def type_constraint(self, perspective: Perspective) -> Optional[FrozenSet[PropertyType]]:
        """
        Property types a listing may have, or None when unconstrained.

        Buyer needs carry one type which must match exactly when looking
        from a listing; saved searches carry a set.
        """
        if perspective is Perspective.REVERSE_PROSPECT and self.property_type is not None:
            return frozenset([self.property_type])
        types = set(self.property_types or ())
        if self.property_type is not None:
            types.add(self.property_type)
        return frozenset(types) if types else None


@dataclass(frozen=True)
class CoverageArea:
    """A state, or one city within it, that a buyer agent works."""
    state: str
    city: Optional[str] = None


@dataclass(frozen=True)
class AgentPreference:
    """
    A buyer agent's notification preferences.

    Price bounds describe the range of deals the agent takes; None on
    either side leaves that side open.
    """

    id: Optional[str] = None
    coverage: Tuple[CoverageArea, ...] = ()
    min_price: Optional[Number] = None
    max_price: Optional[Number] = None
    enabled: bool = True
    contact: Contact = field(default_factory=Contact)
