"""Resource id helpers for Digital Product Passports.

A resource id looks like ``RES-1234-AB``: a fixed prefix, a four digit block
(1000-9999) and two upper-case letters. Ids are printed on collection slips
and read back by people, so lookups are forgiving about case and spacing.
"""

from __future__ import annotations

import random
import re
import string

__all__ = ["generate_resource_id", "is_resource_id", "normalize_resource_id"]


_SYSTEM_RANDOM = random.SystemRandom()


def _pattern(prefix: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(prefix)}-[1-9]\d{{3}}-[A-Z]{{2}}$")


def generate_resource_id(prefix: str = "RES", rng: random.Random | None = None) -> str:
    """Draw a fresh id. Collisions are possible; callers retry on them."""

    source = rng or _SYSTEM_RANDOM
    digits = source.randint(1000, 9999)
    letters = "".join(source.choice(string.ascii_uppercase) for _ in range(2))
    return f"{prefix}-{digits}-{letters}"


def normalize_resource_id(raw: str | None) -> str | None:
    """Trim, upper-case and squash internal whitespace/underscores into dashes."""

    if raw is None:
        return None
    cleaned = re.sub(r"[\s_]+", "-", raw.strip()).upper()
    return cleaned or None


def is_resource_id(value: str | None, prefix: str = "RES") -> bool:
    if not value:
        return False
    return bool(_pattern(prefix).match(value))
