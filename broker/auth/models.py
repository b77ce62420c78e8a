from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

PROVIDERS = ("discord", "google")


@dataclass(frozen=True)
class SessionUser:
    """Normalized identity carried inside the session cookie."""

    provider: str  # discord|google
    id: str
    username: str
    global_name: Optional[str] = None
    avatar: Optional[str] = None
    email: Optional[str] = None  # Only Google populates this
