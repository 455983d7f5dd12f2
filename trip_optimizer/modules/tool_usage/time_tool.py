"""
modules/tool_usage/time_tool.py
-------------------------------
Clock-time helpers. All arithmetic is done in integer minutes from midnight;
values past 23:59 are allowed (a 23:00 arrival plus a 90 min buffer is 1470).
"""

from __future__ import annotations
import re
from datetime import time
from typing import Optional

_CLOCK_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")


def parse_clock(text: Optional[str]) -> Optional[int]:
    """
    "HH:MM" → minutes from midnight. None/empty → None.
    Raises ValueError on anything else.
    """
    if text is None or not str(text).strip():
        return None
    m = _CLOCK_RE.match(str(text))
    if not m:
        raise ValueError(f"invalid clock time {text!r}; expected HH:MM")
    hours, minutes = int(m.group(1)), int(m.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"invalid clock time {text!r}; out of range")
    return hours * 60 + minutes


def m2t(mins: int) -> time:
    """Convert minutes-from-midnight to a time object (clamped to [0, 1439])."""
    mins = max(0, min(int(mins), 23 * 60 + 59))
    return time(mins // 60, mins % 60)


def format_clock(mins: int) -> str:
    return m2t(mins).strftime("%H:%M")
