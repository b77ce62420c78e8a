from __future__ import annotations

from typing import Optional

from fastapi import Request

from broker.auth.config import AuthConfig, load_auth_config
from broker.auth.models import SessionUser
from broker.auth.session import decode_session


def get_auth_config(request: Request) -> AuthConfig:
    """Configuration injected by `create_app`, falling back to the environment."""
    cfg = getattr(request.app.state, "auth_config", None)
    if cfg is None:
        cfg = load_auth_config()
    return cfg


def authenticate_request(request: Request) -> Optional[SessionUser]:
    """
    Return the session user carried by the request cookie, if present and valid.

    Verification failures are never surfaced; they simply mean "not authenticated".
    """
    cfg = get_auth_config(request)
    return decode_session(cfg, request.cookies.get(cfg.cookie_name))
