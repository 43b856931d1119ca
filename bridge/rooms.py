"""
Room identifiers.

A room id is derived from the two participants of a connection, never
stored on its own. The canonical form puts the lower user id first, so the
same pair always maps to the same string whichever side computes it.
"""
import re

from .exceptions import NotFound

ROOM_RE = re.compile(r"^(\d+)_(\d+)$")

USER_CHANNEL_PREFIX = "user_"


def room_id(a_id, b_id):
    """Canonical room id for a pair of user ids, e.g. (2, 1) -> "1_2"."""
    a_id, b_id = int(a_id), int(b_id)
    if a_id == b_id:
        raise ValueError("A room needs two distinct participants")
    low, high = sorted((a_id, b_id))
    return f"{low}_{high}"


def room_participants(value):
    """
    Inverse of ``room_id``: returns the (lower, higher) id pair.
    Raises NotFound for anything that is not a canonical room id.
    """
    value = str(value or "")
    match = ROOM_RE.match(value)
    if not match:
        raise NotFound(f"Unknown room {value!r}")
    low, high = int(match.group(1)), int(match.group(2))
    if low >= high or f"{low}_{high}" != value:
        raise NotFound(f"Unknown room {value!r}")
    return low, high


def user_channel(user_id):
    return f"{USER_CHANNEL_PREFIX}{int(user_id)}"
