from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple
from urllib.parse import urlencode

import requests

from broker.auth.config import AuthConfig
from broker.auth.models import SessionUser

DISCORD_CDN = "https://cdn.discordapp.com"
DISCORD_DEFAULT_AVATAR = f"{DISCORD_CDN}/embed/avatars/0.png"


class ProviderError(Exception):
    """A provider answered, but not with something we can use."""

    def __init__(self, provider: str, stage: str, status: Optional[int] = None):
        self.provider = provider
        self.stage = stage  # token|profile|normalize
        self.status = status
        detail = f" (status={status})" if status is not None else ""
        super().__init__(f"{provider} {stage} step failed{detail}")


@dataclass(frozen=True)
class OAuthProvider:
    name: str
    authorize_endpoint: str
    token_endpoint: str
    profile_endpoint: str
    scope: str
    normalize: Callable[[Dict[str, Any]], SessionUser]
    extra_authorize_params: Tuple[Tuple[str, str], ...] = ()


def normalize_discord(profile: Dict[str, Any]) -> SessionUser:
    """
    Map a Discord `/users/@me` payload onto a session.

    Email is never taken from Discord, even though the `email` scope is requested.
    """
    user_id = str(profile.get("id") or "").strip()
    if not user_id:
        raise ProviderError("discord", "normalize")
    avatar_hash = profile.get("avatar")
    if avatar_hash:
        avatar = f"{DISCORD_CDN}/avatars/{user_id}/{avatar_hash}.png?size=128"
    else:
        avatar = DISCORD_DEFAULT_AVATAR
    return SessionUser(
        provider="discord",
        id=user_id,
        username=str(profile.get("username") or ""),
        global_name=profile.get("global_name") or None,
        avatar=avatar,
        email=None,
    )


def normalize_google(profile: Dict[str, Any]) -> SessionUser:
    """Map an OpenID Connect userinfo payload onto a session."""
    user_id = str(profile.get("sub") or "").strip()
    if not user_id:
        raise ProviderError("google", "normalize")
    name = profile.get("name") or None
    return SessionUser(
        provider="google",
        id=user_id,
        username=name or profile.get("given_name") or "User",
        global_name=name,
        avatar=profile.get("picture") or None,
        email=profile.get("email") or None,
    )


DISCORD = OAuthProvider(
    name="discord",
    authorize_endpoint="https://discord.com/oauth2/authorize",
    token_endpoint="https://discord.com/api/oauth2/token",
    profile_endpoint="https://discord.com/api/users/@me",
    scope="identify email",
    normalize=normalize_discord,
)

GOOGLE = OAuthProvider(
    name="google",
    authorize_endpoint="https://accounts.google.com/o/oauth2/v2/auth",
    token_endpoint="https://oauth2.googleapis.com/token",
    profile_endpoint="https://openidconnect.googleapis.com/v1/userinfo",
    scope="openid email profile",
    normalize=normalize_google,
    # Always show the consent screen.
    extra_authorize_params=(
        ("access_type", "online"),
        ("include_granted_scopes", "true"),
        ("prompt", "consent"),
    ),
)

SUPPORTED_PROVIDERS: Dict[str, OAuthProvider] = {p.name: p for p in (DISCORD, GOOGLE)}


def get_provider(name: str) -> Optional[OAuthProvider]:
    return SUPPORTED_PROVIDERS.get((name or "").strip().lower())


def build_authorize_url(cfg: AuthConfig, provider: OAuthProvider) -> str:
    creds = cfg.credentials_for(provider.name)
    params = {
        "client_id": creds.client_id or "",
        "redirect_uri": creds.redirect_uri or "",
        "response_type": "code",
        "scope": provider.scope,
    }
    params.update(dict(provider.extra_authorize_params))
    return f"{provider.authorize_endpoint}?{urlencode(params)}"


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def exchange_code_for_token(cfg: AuthConfig, provider: OAuthProvider, code: str) -> str:
    """
    Exchange an authorization code for an access token.

    Raises ProviderError on a non-2xx answer or a response without `access_token`;
    network failures surface as `requests.RequestException`.
    """
    creds = cfg.credentials_for(provider.name)
    payload = {
        "client_id": creds.client_id,
        "client_secret": creds.client_secret,
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": creds.redirect_uri,
    }
    r = requests.post(
        provider.token_endpoint,
        data=payload,
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        timeout=cfg.provider_timeout_seconds,
    )
    if not _is_success(r.status_code):
        # Avoid leaking sensitive info; include minimal context.
        raise ProviderError(provider.name, "token", r.status_code)
    data = r.json()
    if not isinstance(data, dict):
        raise ProviderError(provider.name, "token", r.status_code)
    access_token = str(data.get("access_token") or "").strip()
    if not access_token:
        raise ProviderError(provider.name, "token", r.status_code)
    return access_token


def fetch_profile(cfg: AuthConfig, provider: OAuthProvider, access_token: str) -> Dict[str, Any]:
    r = requests.get(
        provider.profile_endpoint,
        headers={"Authorization": f"Bearer {access_token}"},
        timeout=cfg.provider_timeout_seconds,
    )
    if not _is_success(r.status_code):
        raise ProviderError(provider.name, "profile", r.status_code)
    data = r.json()
    if not isinstance(data, dict):
        raise ProviderError(provider.name, "profile", r.status_code)
    return data


def complete_login(cfg: AuthConfig, provider: OAuthProvider, code: str) -> SessionUser:
    """Run the code exchange and profile fetch, returning the normalized session."""
    access_token = exchange_code_for_token(cfg, provider, code)
    profile = fetch_profile(cfg, provider, access_token)
    return provider.normalize(profile)
