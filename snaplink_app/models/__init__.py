"""
Database models for SnapLink.

ShortLink holds the transactional link data; ClickEvent is the append-only
event log the analytics are computed from.
"""

from .common import DeviceType
from .link import ShortLink
from .click import ClickEvent

__all__ = ["ShortLink", "ClickEvent", "DeviceType"]
