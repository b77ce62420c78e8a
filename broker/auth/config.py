from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

DEFAULT_COOKIE_NAME = "animorex_session"
DEFAULT_PORT = 8080
DEFAULT_TIMEOUT_SECONDS = 10.0


class ConfigError(RuntimeError):
    """Raised when required settings are absent at startup."""


@dataclass(frozen=True)
class ProviderCredentials:
    client_id: Optional[str]
    client_secret: Optional[str]
    redirect_uri: Optional[str]


@dataclass(frozen=True)
class AuthConfig:
    # Client application (redirect target + CORS origin)
    client_url: Optional[str]

    # Provider credentials
    discord: ProviderCredentials
    google: ProviderCredentials

    # Session configuration
    session_secret: Optional[str]
    cookie_name: str

    # Outbound provider calls
    provider_timeout_seconds: float

    # Server
    host: str
    port: int

    def credentials_for(self, provider: str) -> ProviderCredentials:
        if provider == "discord":
            return self.discord
        if provider == "google":
            return self.google
        raise KeyError(provider)

    def missing_settings(self) -> List[str]:
        """Environment variable names that must be set before the server can run."""
        missing: List[str] = []
        if not self.client_url:
            missing.append("CLIENT_URL")
        for prefix, creds in (("DISCORD", self.discord), ("GOOGLE", self.google)):
            if not creds.client_id:
                missing.append(f"{prefix}_CLIENT_ID")
            if not creds.client_secret:
                missing.append(f"{prefix}_CLIENT_SECRET")
            if not creds.redirect_uri:
                missing.append(f"{prefix}_REDIRECT_URI")
        if not self.session_secret:
            missing.append("SESSION_SECRET")
        return missing

    def require_complete(self) -> None:
        missing = self.missing_settings()
        if missing:
            raise ConfigError("Missing required settings: " + ", ".join(missing))


def _env(name: str) -> Optional[str]:
    return (os.getenv(name, "") or "").strip() or None


def _provider_credentials(prefix: str) -> ProviderCredentials:
    return ProviderCredentials(
        client_id=_env(f"{prefix}_CLIENT_ID"),
        client_secret=_env(f"{prefix}_CLIENT_SECRET"),
        redirect_uri=_env(f"{prefix}_REDIRECT_URI"),
    )


def _parse_int(value: Optional[str], default: int) -> int:
    try:
        return int(float(value)) if value else default
    except ValueError:
        return default


def _parse_timeout(value: Optional[str]) -> float:
    try:
        timeout = float(value) if value else DEFAULT_TIMEOUT_SECONDS
    except ValueError:
        return DEFAULT_TIMEOUT_SECONDS
    # Never allow an unbounded (or zero) timeout for provider calls.
    return timeout if timeout >= 1 else 1.0


@lru_cache(maxsize=1)
def load_auth_config() -> AuthConfig:
    """
    Load broker configuration from environment variables.

    Loading never fails; call `AuthConfig.require_complete()` to enforce that
    the signing secret, client URL and both provider credentials are present.
    `JWT_SECRET` is accepted as a fallback name for `SESSION_SECRET`.
    """
    return AuthConfig(
        client_url=(_env("CLIENT_URL") or "").rstrip("/") or None,
        discord=_provider_credentials("DISCORD"),
        google=_provider_credentials("GOOGLE"),
        session_secret=_env("SESSION_SECRET") or _env("JWT_SECRET"),
        cookie_name=_env("COOKIE_NAME") or DEFAULT_COOKIE_NAME,
        provider_timeout_seconds=_parse_timeout(_env("PROVIDER_TIMEOUT_SECONDS")),
        host=_env("HOST") or "0.0.0.0",
        port=_parse_int(_env("PORT"), DEFAULT_PORT),
    )
