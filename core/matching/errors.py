"""
Error kinds raised by the match engine.
"""

from typing import List, Optional


class InvalidInput(ValueError):
    """
    A record could not be evaluated because a field has the wrong type.

    Raised for structurally wrong values only (a string where a number was
    expected, NaN, a negative price). Missing optional fields are never an
    error. Callers treat the record as "cannot be evaluated" and leave it out
    of both match and non-match counts.
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None, record_id: Optional[str] = None):
        super().__init__(message)
        self.errors = list(errors) if errors else [message]
        self.record_id = record_id

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "message": str(self),
            "errors": self.errors,
            "record_id": self.record_id,
        }
