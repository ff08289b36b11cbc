"""
Agent Matcher

Finds the buyer agents who should hear about a new buyer need:
- Agent has buyer-need notifications enabled
- Agent covers the need's state
- Agent covers the need's city (a state-wide area covers every city)
- Agent's price range overlaps the need's budget

Absent need fields never cause a non-match, same as CriteriaMatcher.
"""

from typing import Iterable, List

from core.models import AgentPreference, CoverageArea, CriteriaRecord, Perspective

from .counter import ON_INVALID_RAISE, MatchResult, check_policy, collect_matches
from .errors import InvalidInput
from .matcher import CITY, STATE, CriteriaMatcher
from .normalize import check_number, fold_text, is_blank, same_state

ENABLED = "enabled"
PRICE_RANGE = "price_range"


class AgentMatcher:
    """Pure predicate over (buyer need, agent preference) pairs."""

    def __init__(self):
        self._criteria = CriteriaMatcher(Perspective.REVERSE_PROSPECT)

    def matches(self, need: CriteriaRecord, preference: AgentPreference) -> bool:
        """
        Return True if the agent should be notified about the need.

        Raises:
            InvalidInput: if either record has a structurally wrong field
        """
        return not self.check(need, preference)

    def check(self, need: CriteriaRecord, preference: AgentPreference) -> List[str]:
        """Name the rules the agent fails, in evaluation order."""
        self.validate_need(need)
        self.validate_preference(preference)

        failed = []
        for name, passed in (
            (ENABLED, preference.enabled),
            (STATE, self._check_state(need, preference)),
            (CITY, self._check_city(need, preference)),
            (PRICE_RANGE, self._check_price_range(need, preference)),
        ):
            if not passed:
                failed.append(name)
        return failed

    def validate_need(self, need: CriteriaRecord) -> None:
        """Raise InvalidInput if the buyer need cannot be evaluated."""
        self._criteria.validate_criteria(need)

    def validate_preference(self, preference: AgentPreference) -> None:
        """Raise InvalidInput if the agent preference cannot be evaluated."""
        if not isinstance(preference, AgentPreference):
            raise InvalidInput(f"Expected an AgentPreference, got {type(preference).__name__}")

        errors = [
            error for error in (
                check_number(preference.min_price, "min_price"),
                check_number(preference.max_price, "max_price"),
            )
            if error
        ]
        if not isinstance(preference.enabled, bool):
            errors.append(f"enabled must be a bool, got {preference.enabled!r}")
        if not isinstance(preference.coverage, (tuple, list)):
            errors.append("coverage must be a sequence of CoverageArea")
        else:
            for area in preference.coverage:
                if not isinstance(area, CoverageArea):
                    errors.append(f"coverage contains an invalid area: {area!r}")
                elif not isinstance(area.state, str) or not (area.city is None or isinstance(area.city, str)):
                    errors.append(f"coverage area must hold text: {area!r}")

        if errors:
            raise InvalidInput(
                f"Agent {preference.id or '<unsaved>'} cannot be evaluated: {'; '.join(errors)}",
                errors=errors,
                record_id=preference.id,
            )

    def _check_state(self, need: CriteriaRecord, preference: AgentPreference) -> bool:
        if is_blank(need.state):
            return True
        return any(same_state(area.state, need.state) for area in preference.coverage)

    def _check_city(self, need: CriteriaRecord, preference: AgentPreference) -> bool:
        wanted = [city for city in (need.city, *(need.cities or ())) if not is_blank(city)]
        if not wanted:
            return True

        areas = preference.coverage
        if not is_blank(need.state):
            areas = [area for area in areas if same_state(area.state, need.state)]

        for area in areas:
            if is_blank(area.city):
                return True
            if any(fold_text(area.city) == fold_text(city) for city in wanted):
                return True
        return False

    def _check_price_range(self, need: CriteriaRecord, preference: AgentPreference) -> bool:
        # Ranges overlap; a missing bound on either side is open.
        if need.max_price is not None and preference.min_price is not None:
            if preference.min_price > need.max_price:
                return False
        if need.min_price is not None and preference.max_price is not None:
            if preference.max_price < need.min_price:
                return False
        return True


def match_agents(
    need: CriteriaRecord,
    preferences: Iterable[AgentPreference],
    on_invalid: str = ON_INVALID_RAISE,
) -> MatchResult:
    """
    Agents to notify about a buyer need, in input order.

    Raises:
        InvalidInput: if the need is invalid, or a preference is invalid
            and the policy is "raise"
    """
    on_invalid = check_policy(on_invalid)
    matcher = AgentMatcher()
    matcher.validate_need(need)
    return collect_matches(preferences, lambda preference: matcher.matches(need, preference), on_invalid)
