"""
Utility modules for the valuation service.
"""

from .formatting import format_area, format_price, format_price_range
from .config import Config, configure_logging

__all__ = ["format_area", "format_price", "format_price_range", "Config", "configure_logging"]
