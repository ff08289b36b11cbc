"""
Match Counter

Applies a match predicate across a collection and reports the count and
the matched records, in input order. Backs the "12 matches" badges and the
match lists handed to the notification fan-out.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Tuple, Union

from core.models import CriteriaRecord, ListingRecord, Perspective

from .errors import InvalidInput
from .matcher import CriteriaMatcher

logger = logging.getLogger(__name__)

Record = Union[ListingRecord, CriteriaRecord]

ON_INVALID_RAISE = "raise"
ON_INVALID_SKIP = "skip"
ON_INVALID_POLICIES = (ON_INVALID_RAISE, ON_INVALID_SKIP)


@dataclass(frozen=True)
class SkippedRecord:
    """A candidate that could not be evaluated."""
    record: Record
    errors: Tuple[str, ...]


@dataclass(frozen=True)
class MatchResult:
    """
    Outcome of counting one anchor against a collection.

    Skipped candidates are neither matches nor non-matches.
    """
    matches: Tuple[Record, ...] = ()
    skipped: Tuple[SkippedRecord, ...] = ()
    evaluated: int = 0

    @property
    def count(self) -> int:
        """Number of matched candidates."""
        return len(self.matches)

    @property
    def ids(self) -> List[str]:
        """Ids of matched records that have one."""
        return [record.id for record in self.matches if record.id is not None]

    def first(self, limit: int) -> Tuple[Record, ...]:
        """Leading matches for a preview; count is unaffected."""
        if limit < 0:
            raise ValueError("limit cannot be negative")
        return self.matches[:limit]

    def excluding(self, ids: Iterable[str]) -> "MatchResult":
        """
        Drop matches whose id is in ids.

        Used to leave out listings a hot sheet has already delivered.
        Records without an id are always kept.
        """
        excluded = set(ids)
        kept = tuple(record for record in self.matches if record.id is None or record.id not in excluded)
        return MatchResult(matches=kept, skipped=self.skipped, evaluated=self.evaluated)

    def to_dict(self) -> dict:
        """
        Convert to dictionary for JSON output.

        "matches" holds one id per matched record, None for records that
        have no id, so its length always equals "matching_count".
        """
        return {
            "matching_count": self.count,
            "matches": [record.id for record in self.matches],
            "evaluated": self.evaluated,
            "skipped": [
                {"id": getattr(item.record, "id", None), "errors": list(item.errors)}
                for item in self.skipped
            ],
        }


class MatchCounter:
    """
    Counts matches between one anchor record and a collection.

    The anchor may be a criteria record (find listings for a saved search)
    or a listing (find buyer needs for a listing). The perspective is fixed
    per counter.
    """

    def __init__(
        self,
        perspective: Perspective = Perspective.HOT_SHEET,
        on_invalid: str = ON_INVALID_RAISE,
    ):
        """
        Initialize counter.

        Args:
            perspective: Direction matches are evaluated in
            on_invalid: "raise" to propagate InvalidInput from a candidate,
                "skip" to record it in MatchResult.skipped and carry on
        """
        self._matcher = CriteriaMatcher(perspective)
        self._on_invalid = check_policy(on_invalid)

    @property
    def perspective(self) -> Perspective:
        return self._matcher.perspective

    def count(self, anchor: Record, candidates: Iterable[Record]) -> MatchResult:
        """Dispatch on the anchor type."""
        if isinstance(anchor, CriteriaRecord):
            return self.count_listings(anchor, candidates)
        if isinstance(anchor, ListingRecord):
            return self.count_criteria(anchor, candidates)
        raise InvalidInput(f"Anchor must be a ListingRecord or CriteriaRecord, got {type(anchor).__name__}")

    def count_listings(self, criteria: CriteriaRecord, listings: Iterable[ListingRecord]) -> MatchResult:
        """
        Find the listings a criteria record matches.

        Args:
            criteria: Saved search or buyer need
            listings: Candidate listings, in display order

        Returns:
            MatchResult with matched listings in input order

        Raises:
            InvalidInput: if the criteria is invalid, or a listing is
                invalid and the policy is "raise"
        """
        self._matcher.validate_criteria(criteria)
        return self._collect(listings, lambda listing: self._matcher.matches(listing, criteria))

    def count_criteria(self, listing: ListingRecord, criteria_records: Iterable[CriteriaRecord]) -> MatchResult:
        """
        Find the criteria records a listing satisfies.

        Args:
            listing: The listing being prospected
            criteria_records: Candidate buyer needs or hot sheets

        Returns:
            MatchResult with matched criteria records in input order

        Raises:
            InvalidInput: if the listing is invalid, or a criteria record
                is invalid and the policy is "raise"
        """
        self._matcher.validate_listing(listing)
        return self._collect(criteria_records, lambda criteria: self._matcher.matches(listing, criteria))

    def _collect(self, candidates: Iterable[Record], predicate) -> MatchResult:
        return collect_matches(candidates, predicate, self._on_invalid)


def check_policy(on_invalid: str) -> str:
    """Return on_invalid if it names a known policy, else raise ValueError."""
    if on_invalid not in ON_INVALID_POLICIES:
        raise ValueError(f"on_invalid must be one of {ON_INVALID_POLICIES}, got {on_invalid!r}")
    return on_invalid


def collect_matches(
    candidates: Iterable[Any],
    predicate: Callable[[Any], bool],
    on_invalid: str = ON_INVALID_RAISE,
) -> MatchResult:
    """
    Apply predicate to each candidate, keeping the ones it accepts.

    Candidates for which predicate raises InvalidInput are re-raised or
    recorded as skipped, depending on on_invalid.
    """
    matches = []
    skipped = []
    evaluated = 0

    for candidate in candidates:
        try:
            matched = predicate(candidate)
        except InvalidInput as e:
            if on_invalid == ON_INVALID_RAISE:
                raise
            logger.warning(
                "Skipping %s %s: %s",
                type(candidate).__name__,
                getattr(candidate, "id", None),
                e,
            )
            skipped.append(SkippedRecord(record=candidate, errors=tuple(e.errors)))
            continue

        evaluated += 1
        if matched:
            matches.append(candidate)

    return MatchResult(matches=tuple(matches), skipped=tuple(skipped), evaluated=evaluated)


def hot_sheet_matches(
    criteria: CriteriaRecord,
    listings: Iterable[ListingRecord],
    on_invalid: str = ON_INVALID_RAISE,
) -> MatchResult:
    """Listings a saved search would surface."""
    return MatchCounter(Perspective.HOT_SHEET, on_invalid=on_invalid).count_listings(criteria, listings)


def reverse_prospect(
    listing: ListingRecord,
    needs: Iterable[CriteriaRecord],
    on_invalid: str = ON_INVALID_RAISE,
) -> MatchResult:
    """Buyer needs a listing would satisfy."""
    return MatchCounter(Perspective.REVERSE_PROSPECT, on_invalid=on_invalid).count_criteria(listing, needs)
