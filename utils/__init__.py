"""
Utility modules for the match engine.
"""

from .formatting import format_currency, format_match_count, format_remainder
from .config import Config

__all__ = ["format_currency", "format_match_count", "format_remainder", "Config"]
