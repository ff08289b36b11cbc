"""
Match Engine

Evaluates buyer/seller criteria against listings for hot sheets, reverse
prospecting, agent matching and match-count badges. Pure and synchronous:
callers fetch the records, the engine only decides and counts.
"""

from .errors import InvalidInput
from .matcher import CriteriaMatcher
from .counter import (
    MatchCounter,
    MatchResult,
    SkippedRecord,
    ON_INVALID_RAISE,
    ON_INVALID_SKIP,
    collect_matches,
    hot_sheet_matches,
    reverse_prospect,
)
from .agents import AgentMatcher, match_agents
from .audience import (
    Recipient,
    collect_recipients,
    SOURCE_AGENT,
    SOURCE_CLIENT_NEED,
    SOURCE_HOT_SHEET,
)

__all__ = [
    # Errors
    "InvalidInput",
    # Engine
    "CriteriaMatcher",
    "MatchCounter",
    "MatchResult",
    "SkippedRecord",
    "ON_INVALID_RAISE",
    "ON_INVALID_SKIP",
    "collect_matches",
    "hot_sheet_matches",
    "reverse_prospect",
    # Agents
    "AgentMatcher",
    "match_agents",
    # Notification audience
    "Recipient",
    "collect_recipients",
    "SOURCE_AGENT",
    "SOURCE_CLIENT_NEED",
    "SOURCE_HOT_SHEET",
]
