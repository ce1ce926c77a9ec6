"""
Per-user-type limits.
"""

from typing import Dict

# Messages a user may send in a rolling 24 hour window.
MAX_MESSAGES_PER_DAY: Dict[str, int] = {
    "guest": 20,
    "regular": 100,
}

ENTITLEMENT_WINDOW_HOURS = 24


def max_messages_per_day(user_type: str) -> int:
    return MAX_MESSAGES_PER_DAY.get(user_type, MAX_MESSAGES_PER_DAY["guest"])
