"""
Pytest config.

Local imports like `import broker` rely on the repo root being on sys.path; when
invoking a global `pytest` entrypoint that doesn't happen reliably during
collection, so we pin it here.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()

from broker.auth.config import AuthConfig, ProviderCredentials, load_auth_config  # noqa: E402

CLIENT_URL = "https://app.animorex.test"


@pytest.fixture(autouse=True)
def _fresh_auth_config():
    load_auth_config.cache_clear()
    yield
    load_auth_config.cache_clear()


@pytest.fixture
def auth_cfg() -> AuthConfig:
    return AuthConfig(
        client_url=CLIENT_URL,
        discord=ProviderCredentials(
            client_id="discord-id",
            client_secret="discord-secret",
            redirect_uri="https://api.animorex.test/api/auth/discord/callback",
        ),
        google=ProviderCredentials(
            client_id="google-id",
            client_secret="google-secret",
            redirect_uri="https://api.animorex.test/api/auth/google/callback",
        ),
        session_secret="test-secret-key-for-testing-purposes-only",
        cookie_name="animorex_session",
        provider_timeout_seconds=5.0,
        host="127.0.0.1",
        port=8080,
    )


@pytest.fixture
def client(auth_cfg):
    from fastapi.testclient import TestClient

    from broker.api.server import create_app

    # https base URL so `Secure` session cookies round-trip through the jar.
    return TestClient(create_app(auth_cfg), base_url="https://testserver")
