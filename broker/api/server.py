"""
Identity broker HTTP server.

Exchanges Discord/Google authorization codes for a signed session cookie and
lets the client application read or clear that session.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import asdict
from typing import Optional

import requests
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse

from broker.auth.config import AuthConfig, load_auth_config
from broker.auth.deps import authenticate_request, get_auth_config
from broker.auth.providers import OAuthProvider, ProviderError, build_authorize_url, complete_login, get_provider
from broker.auth.session import clear_session_cookie_kwargs, encode_session, session_cookie_kwargs
from broker.auth.util import AUTH_ERROR, AUTH_SUCCESS, client_redirect_url

logger = logging.getLogger(__name__)

LIVENESS_TEXT = "Animorex Auth API (Discord + Google) running"


def _provider_or_404(name: str) -> OAuthProvider:
    provider = get_provider(name)
    if provider is None:
        raise HTTPException(status_code=404, detail="Unknown provider")
    return provider


def _redirect(url: str) -> RedirectResponse:
    resp = RedirectResponse(url=url, status_code=302)
    resp.headers["Cache-Control"] = "no-store"
    return resp


def auth_login(request: Request, provider: str) -> RedirectResponse:
    """Send the browser to the provider's consent screen."""
    p = _provider_or_404(provider)
    cfg = get_auth_config(request)
    return _redirect(build_authorize_url(cfg, p))


def auth_callback(request: Request, provider: str, code: Optional[str] = Query(None)) -> RedirectResponse:
    """
    Handle the provider redirect after consent.

    Every failure resolves to `<client>/?auth=error`; details stay in the server log.
    """
    p = _provider_or_404(provider)
    cfg = get_auth_config(request)

    code = (code or "").strip()
    if not code:
        logger.info("%s callback without authorization code", p.name)
        return _redirect(client_redirect_url(cfg, AUTH_ERROR))

    try:
        user = complete_login(cfg, p, code)
    except ProviderError as e:
        logger.warning("%s login failed: %s", p.name, str(e))
        return _redirect(client_redirect_url(cfg, AUTH_ERROR))
    except requests.RequestException as e:
        logger.warning("%s login failed: %s", p.name, type(e).__name__)
        return _redirect(client_redirect_url(cfg, AUTH_ERROR))
    except Exception:
        logger.exception("%s login failed unexpectedly", p.name)
        return _redirect(client_redirect_url(cfg, AUTH_ERROR))

    session_value = encode_session(cfg, user)
    if not session_value:
        logger.error("Session signing is not configured (SESSION_SECRET)")
        return _redirect(client_redirect_url(cfg, AUTH_ERROR))

    logger.info("%s login succeeded for user id=%s", p.name, user.id)
    resp = _redirect(client_redirect_url(cfg, AUTH_SUCCESS))
    resp.set_cookie(**session_cookie_kwargs(cfg, session_value))
    return resp


async def me(request: Request) -> JSONResponse:
    user = authenticate_request(request)
    if user is None:
        # No WWW-Authenticate: the client app renders its own login options.
        return JSONResponse(status_code=401, content={"authenticated": False})
    return JSONResponse(content={"authenticated": True, "user": asdict(user)})


async def logout(request: Request) -> JSONResponse:
    cfg = get_auth_config(request)
    resp = JSONResponse(content={"ok": True})
    resp.headers["Cache-Control"] = "no-store"
    resp.set_cookie(**clear_session_cookie_kwargs(cfg))
    return resp


async def liveness() -> PlainTextResponse:
    return PlainTextResponse(LIVENESS_TEXT)


async def log_requests(request: Request, call_next):
    """Log all incoming HTTP requests."""
    start_time = time.time()
    logger.debug("%s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
        process_time = time.time() - start_time
        logger.debug("%s %s - %d (%.3fs)", request.method, request.url.path, response.status_code, process_time)
        return response
    except Exception as e:
        process_time = time.time() - start_time
        logger.exception("%s %s - ERROR after %.3fs: %s", request.method, request.url.path, process_time, str(e))
        raise


def create_app(cfg: Optional[AuthConfig] = None) -> FastAPI:
    """
    Build the broker app around a read-only configuration.

    Handlers read `cfg` from `app.state`; nothing mutates it after startup.
    """
    if cfg is None:
        cfg = load_auth_config()

    app = FastAPI(title="Animorex auth broker")
    app.state.auth_config = cfg

    app.middleware("http")(log_requests)
    if cfg.client_url:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[cfg.client_url],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_api_route("/api/auth/{provider}/login", auth_login, methods=["GET"])
    app.add_api_route("/api/auth/{provider}/callback", auth_callback, methods=["GET"])
    app.add_api_route("/api/me", me, methods=["GET"])
    app.add_api_route("/api/logout", logout, methods=["POST"])
    app.add_api_route("/", liveness, methods=["GET"])
    return app


def run(host: Optional[str] = None, port: Optional[int] = None) -> None:
    import uvicorn

    # Configure logging for the application
    log_level = os.getenv("LOG_LEVEL", "info").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger().setLevel(getattr(logging, log_level, logging.INFO))

    cfg = load_auth_config()
    # Misconfiguration is fatal: refuse to serve rather than degrade.
    cfg.require_complete()

    # Map Python logging levels to uvicorn log levels
    uvicorn_log_level = (
        log_level.lower() if log_level.lower() in ["critical", "error", "warning", "info", "debug", "trace"] else "info"
    )

    bind_host = host or cfg.host
    bind_port = port or cfg.port
    logger.info("Starting auth broker on %s:%d (log_level=%s)", bind_host, bind_port, log_level)
    uvicorn.run(create_app(cfg), host=bind_host, port=bind_port, log_level=uvicorn_log_level)
