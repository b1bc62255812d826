"""
Utility modules for the assessment service.
"""

from .formatting import format_currency, format_percent
from .config import Config

__all__ = ["format_currency", "format_percent", "Config"]
