"""Application layer for the monitor."""

from .application import MonitorApp
from .limit_store import LimitStore

__all__ = ["LimitStore", "MonitorApp"]
