"""
Recipient list for the match notification fan-out.

Turns matched criteria records into one entry per contact email. Delivery
itself belongs to the notification service.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple, Union

from core.models import AgentPreference, Contact, CriteriaRecord

SOURCE_CLIENT_NEED = "client_need"
SOURCE_HOT_SHEET = "hot_sheet"
SOURCE_AGENT = "agent"


@dataclass(frozen=True)
class Recipient:
    """One person to notify about a match."""
    email: str
    first_name: str = ""
    last_name: str = ""
    source: str = SOURCE_CLIENT_NEED
    criteria_id: str = ""

    @property
    def display_name(self) -> str:
        return Contact(self.email, self.first_name, self.last_name).display_name

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "source": self.source,
            "criteria_id": self.criteria_id,
        }


def collect_recipients(
    *groups: Tuple[str, Iterable[Union[CriteriaRecord, AgentPreference]]],
) -> List[Recipient]:
    """
    De-duplicate contacts across matched criteria records or agents.

    Args:
        groups: (source, matched records) pairs, e.g.
            (SOURCE_CLIENT_NEED, need_result.matches)

    Returns:
        One Recipient per email (case-insensitive), ordered by first
        appearance. A later record for the same email replaces the earlier
        entry's details. Records without an email are skipped.
    """
    by_email: Dict[str, Recipient] = {}

    for source, records in groups:
        for record in records:
            email = (record.contact.email or "").strip()
            if not email:
                continue
            by_email[email.lower()] = Recipient(
                email=email,
                first_name=record.contact.first_name,
                last_name=record.contact.last_name,
                source=source,
                criteria_id=record.id or "",
            )

    return list(by_email.values())
