from __future__ import annotations

import dataclasses
import time

from itsdangerous import TimestampSigner

from broker.auth.models import SessionUser
from broker.auth.session import (
    SESSION_TTL_SECONDS,
    clear_session_cookie_kwargs,
    decode_session,
    encode_session,
    session_cookie_kwargs,
)


def _discord_user() -> SessionUser:
    return SessionUser(
        provider="discord",
        id="80351110224678912",
        username="nelly",
        global_name="Nelly",
        avatar="https://cdn.discordapp.com/avatars/80351110224678912/8342729096ea3675442027381ff50dfe.png?size=128",
        email=None,
    )


def test_session_round_trip(auth_cfg) -> None:
    user = _discord_user()
    token = encode_session(auth_cfg, user)
    assert token
    assert decode_session(auth_cfg, token) == user


def test_google_session_round_trip_keeps_email(auth_cfg) -> None:
    user = SessionUser(
        provider="google",
        id="1234567890",
        username="Ana",
        global_name=None,
        avatar=None,
        email="ana@example.com",
    )
    assert decode_session(auth_cfg, encode_session(auth_cfg, user)) == user


def test_session_expires_after_seven_days(auth_cfg, monkeypatch) -> None:
    token = encode_session(auth_cfg, _discord_user())
    later = int(time.time()) + SESSION_TTL_SECONDS + 5
    monkeypatch.setattr(TimestampSigner, "get_timestamp", lambda self: later)
    assert decode_session(auth_cfg, token) is None


def test_session_still_valid_just_before_expiry(auth_cfg, monkeypatch) -> None:
    token = encode_session(auth_cfg, _discord_user())
    later = int(time.time()) + SESSION_TTL_SECONDS - 60
    monkeypatch.setattr(TimestampSigner, "get_timestamp", lambda self: later)
    assert decode_session(auth_cfg, token) is not None


def test_tampered_or_foreign_tokens_are_rejected(auth_cfg) -> None:
    token = encode_session(auth_cfg, _discord_user())
    assert decode_session(auth_cfg, token[:-2] + "xx") is None
    assert decode_session(auth_cfg, "not-a-token") is None
    assert decode_session(auth_cfg, "") is None
    assert decode_session(auth_cfg, None) is None

    other = dataclasses.replace(auth_cfg, session_secret="another-secret")
    assert decode_session(other, token) is None


def test_missing_secret_disables_signing(auth_cfg) -> None:
    cfg = dataclasses.replace(auth_cfg, session_secret=None)
    assert encode_session(cfg, _discord_user()) is None
    token = encode_session(auth_cfg, _discord_user())
    assert decode_session(cfg, token) is None


def test_payload_without_identity_is_rejected(auth_cfg) -> None:
    bogus = SessionUser(provider="github", id="1", username="x")
    assert decode_session(auth_cfg, encode_session(auth_cfg, bogus)) is None
    anonymous = SessionUser(provider="google", id="", username="x")
    assert decode_session(auth_cfg, encode_session(auth_cfg, anonymous)) is None


def test_cookie_attributes(auth_cfg) -> None:
    kw = session_cookie_kwargs(auth_cfg, "value")
    assert kw == {
        "key": "animorex_session",
        "value": "value",
        "max_age": 7 * 24 * 60 * 60,
        "httponly": True,
        "secure": True,
        "samesite": "lax",
        "path": "/",
    }
    cleared = clear_session_cookie_kwargs(auth_cfg)
    assert cleared["value"] == ""
    assert cleared["max_age"] == 0
    assert cleared["path"] == "/"
