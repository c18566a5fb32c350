"""
Chrono Rename - A tool to rename media files into one sequence ordered by capture time.

This package provides functionality to:
- Read capture timestamps embedded in photos and videos
- Fall back to file modification times when no timestamp is recorded
- Order files chronologically, keeping file name order for ties
- Rename them as <base>_001.ext, <base>_002.ext, ... without overwriting anything
"""

__version__ = "1.0.0"
__author__ = "Vibe Tools"
__email__ = "tools@vibe.dev"

from .core import MediaRecord, MediaSorter, MediaSortError, order_records, plan_and_apply
from .timestamps import ParsedInstant, parse_timestamp, resolve_timestamp

__all__ = [
    "MediaRecord",
    "MediaSorter",
    "MediaSortError",
    "ParsedInstant",
    "order_records",
    "parse_timestamp",
    "plan_and_apply",
    "resolve_timestamp",
]
