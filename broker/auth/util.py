from __future__ import annotations

from broker.auth.config import AuthConfig

AUTH_SUCCESS = "success"
AUTH_ERROR = "error"


def client_redirect_url(cfg: AuthConfig, outcome: str) -> str:
    """
    Where the browser lands after a callback: `<client>/?auth=<outcome>`.
    """
    base = (cfg.client_url or "").strip().rstrip("/")
    return f"{base}/?auth={outcome}"
