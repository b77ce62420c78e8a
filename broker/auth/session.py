from __future__ import annotations

import json
from dataclasses import asdict
from typing import Optional

from itsdangerous import BadSignature, URLSafeTimedSerializer

from broker.auth.config import AuthConfig
from broker.auth.models import PROVIDERS, SessionUser

SESSION_SALT = "animorex-session-v1"
SESSION_TTL_SECONDS = 7 * 24 * 60 * 60


def _serializer(cfg: AuthConfig) -> Optional[URLSafeTimedSerializer]:
    if not cfg.session_secret:
        return None
    return URLSafeTimedSerializer(secret_key=cfg.session_secret, salt=SESSION_SALT)


def _opt_str(value: object) -> Optional[str]:
    return str(value) if value else None


def encode_session(cfg: AuthConfig, user: SessionUser) -> Optional[str]:
    s = _serializer(cfg)
    if s is None:
        return None
    raw = json.dumps(asdict(user), separators=(",", ":"), sort_keys=True)
    return s.dumps(raw)


def decode_session(cfg: AuthConfig, value: str | None) -> Optional[SessionUser]:
    """Verify a session envelope. Any failure (tampered, expired, malformed) yields None."""
    if not value:
        return None
    s = _serializer(cfg)
    if s is None:
        return None
    try:
        raw = s.loads(value, max_age=SESSION_TTL_SECONDS)
        data = json.loads(raw)
    except (BadSignature, ValueError, TypeError):
        return None
    if not isinstance(data, dict):
        return None

    provider = str(data.get("provider") or "")
    user_id = str(data.get("id") or "")
    if provider not in PROVIDERS or not user_id:
        return None
    return SessionUser(
        provider=provider,
        id=user_id,
        username=str(data.get("username") or ""),
        global_name=_opt_str(data.get("global_name")),
        avatar=_opt_str(data.get("avatar")),
        email=_opt_str(data.get("email")),
    )


def session_cookie_kwargs(cfg: AuthConfig, value: str) -> dict:
    return {
        "key": cfg.cookie_name,
        "value": value,
        "max_age": SESSION_TTL_SECONDS,
        "httponly": True,
        "secure": True,
        "samesite": "lax",
        "path": "/",
    }


def clear_session_cookie_kwargs(cfg: AuthConfig) -> dict:
    return {
        "key": cfg.cookie_name,
        "value": "",
        "max_age": 0,
        "httponly": True,
        "secure": True,
        "samesite": "lax",
        "path": "/",
    }
