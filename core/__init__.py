"""
Listing Match Engine - Core Business Logic

This module provides the matching pipeline shared by every call site:
1. Boundary parsing (form strings and table rows into typed records)
2. Criteria matching (one listing against one criteria record)
3. Match counting (one anchor against a collection, input order kept)
4. Agent matching (buyer agents covering a buyer need)
5. Notification audience (matched contacts, de-duplicated by email)
"""

from .models import (
    PropertyType,
    ListingStatus,
    Perspective,
    Contact,
    ListingRecord,
    CriteriaRecord,
    CoverageArea,
    AgentPreference,
)

from .matching import (
    InvalidInput,
    CriteriaMatcher,
    MatchCounter,
    MatchResult,
    SkippedRecord,
    ON_INVALID_RAISE,
    ON_INVALID_SKIP,
    hot_sheet_matches,
    reverse_prospect,
    AgentMatcher,
    match_agents,
    Recipient,
    collect_recipients,
    SOURCE_AGENT,
    SOURCE_CLIENT_NEED,
    SOURCE_HOT_SHEET,
)

from .forms import parse_agent_preference, parse_criteria, parse_listing

__all__ = [
    # Models
    "PropertyType",
    "ListingStatus",
    "Perspective",
    "Contact",
    "ListingRecord",
    "CriteriaRecord",
    "CoverageArea",
    "AgentPreference",
    # Matching
    "InvalidInput",
    "CriteriaMatcher",
    "MatchCounter",
    "MatchResult",
    "SkippedRecord",
    "ON_INVALID_RAISE",
    "ON_INVALID_SKIP",
    "hot_sheet_matches",
    "reverse_prospect",
    "AgentMatcher",
    "match_agents",
    "Recipient",
    "collect_recipients",
    "SOURCE_AGENT",
    "SOURCE_CLIENT_NEED",
    "SOURCE_HOT_SHEET",
    # Forms
    "parse_agent_preference",
    "parse_criteria",
    "parse_listing",
]

__version__ = "0.1.0"
