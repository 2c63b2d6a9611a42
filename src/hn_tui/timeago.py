from __future__ import annotations

import time
from typing import Optional


def format_age(timestamp: int, now: Optional[float] = None) -> str:
    """Render the age of a Unix timestamp the way the HN front page does."""
    if now is None:
        now = time.time()
    mins = max(0, int(now - timestamp)) // 60
    if mins < 1:
        return "just now"
    if mins < 2:
        return "1 min"
    if mins < 60:
        return f"{mins} mins"
    if mins < 120:
        return "1 hr"
    if mins < 1440:
        return f"{mins // 60} hrs"
    if mins < 2880:
        return "1 day"
    return f"{mins // 1440} days"
