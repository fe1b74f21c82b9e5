"""
User-agent classification for click events.

The rules are ordered: the first matching rule wins, so e.g. Edge must be
tested before Chrome (Edge user agents also contain "chrome/").
"""

import re
from typing import NamedTuple, Optional

from snaplink_app.models.common import DeviceType

MOBILE_PATTERN = re.compile(r"mobile|android|iphone|ipod|blackberry|opera mini|iemobile")
TABLET_PATTERN = re.compile(r"tablet|ipad")

OS_RULES = (
    ("Windows", ("windows",)),
    ("macOS", ("mac os",)),
    ("Linux", ("linux",)),
    ("Android", ("android",)),
    ("iOS", ("ios", "iphone", "ipad")),
)


class UserAgentInfo(NamedTuple):
    device: str
    browser: Optional[str]
    os: Optional[str]


def detect_device(ua: str) -> str:
    if MOBILE_PATTERN.search(ua):
        return DeviceType.MOBILE.value
    if TABLET_PATTERN.search(ua):
        return DeviceType.TABLET.value
    return DeviceType.DESKTOP.value


def detect_browser(ua: str) -> Optional[str]:
    if "edg/" in ua:
        return "Edge"
    if "chrome/" in ua:
        return "Chrome"
    if "safari/" in ua and "chrome" not in ua:
        return "Safari"
    if "firefox/" in ua:
        return "Firefox"
    if "opera" in ua or "opr/" in ua:
        return "Opera"
    return None


def detect_os(ua: str) -> Optional[str]:
    for name, tokens in OS_RULES:
        if any(token in ua for token in tokens):
            return name
    return None


def parse_user_agent(user_agent: Optional[str]) -> UserAgentInfo:
    """
    Classify a raw user-agent string into device, browser and OS.

    A missing or blank user agent yields ("unknown", None, None).
    """
    if not user_agent or not user_agent.strip():
        return UserAgentInfo(DeviceType.UNKNOWN.value, None, None)

    ua = user_agent.lower()
    return UserAgentInfo(detect_device(ua), detect_browser(ua), detect_os(ua))
