"""
Adapters layer - Calendar store implementations (JSON files, Microsoft Graph).
"""

from .graph_store import GraphCalendarStore
from .json_store import JsonCalendarStore

__all__ = ["GraphCalendarStore", "JsonCalendarStore"]
