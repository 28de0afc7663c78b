from __future__ import annotations

import re
from datetime import datetime
from typing import Optional, TypedDict

TITLE_MAX_LENGTH = 200

# SQLite INTEGER range; ids outside it can never be stored.
ID_MIN = -(2**63)
ID_MAX = 2**63 - 1

_ID_PATTERN = re.compile(r"[+-]?[0-9]+")


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    A single to-do record as handed out by the repository.

    Fields:
    - id: Unique integer identifier assigned by the storage engine
    - title: Short title (1..200 chars, trimmed before storage)
    - is_completed: Completion flag; only ever flips from False to True
    - created_at_utc: Timezone-aware UTC creation timestamp, never changed
    """

    id: int
    title: str
    is_completed: bool
    created_at_utc: datetime


def id_in_range(value: int) -> bool:
    return ID_MIN <= value <= ID_MAX


# PUBLIC_INTERFACE
def parse_id(raw: Optional[str]) -> Optional[int]:
    """
    Parse a user-typed id.

    Accepts surrounding whitespace, an optional sign and ASCII digits only.
    Returns None for anything else, including values outside the SQLite
    integer range.
    """
    s = (raw or "").strip()
    if not _ID_PATTERN.fullmatch(s):
        return None
    value = int(s)
    return value if id_in_range(value) else None
