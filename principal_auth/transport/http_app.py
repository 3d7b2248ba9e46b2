"""
HTTP Transport - aiohttp adapter for the auth service

Module: transport.http_app
Date: 2026-10-17
Version: 0.1.0

CHANGELOG:
[2026-10-17 v0.1.0] Initial implementation
  - JSON routes under /api/auth
  - AuthError -> status mapping middleware
  - Blocking service calls moved off the event loop

ARCHITECTURE:
Thin adapter: parse JSON, call AuthService in the default executor,
shape the response. All decisions live in the service.

ROUTES:
One route set serves every principal kind. Chefs register through the
same /api/auth/register with role "chef" (no separate cook router), and
every principal comes back under the "user" key (no "cook" key).

SECURITY NOTES:
- Unexpected errors return a generic 500; details go to the log only
- Protected routes take "Authorization: Bearer <access token>"
"""

import asyncio
import functools
import logging
from typing import Any, Dict

from aiohttp import web

from ..core.auth_service import AuthService
from ..core.constants import (
    API_PREFIX,
    BEARER_PREFIX,
    PRINCIPAL_CHEF,
    PRINCIPAL_USER,
    SERVICE_NAME,
    SERVICE_VERSION,
)
from ..security.authentication.token_lifecycle import TokenPair
from ..security.errors import AuthError, InvalidAccessToken, InvalidRequest

logger = logging.getLogger("transport.http")

SERVICE_KEY = web.AppKey("auth_service", AuthService)
SELF_SERVICE_ROLES = (PRINCIPAL_USER, PRINCIPAL_CHEF)


@web.middleware
async def error_middleware(request: web.Request, handler):
    """Map AuthError kinds to JSON error responses"""
    try:
        return await handler(request)
    except AuthError as e:
        logger.info(f"{request.method} {request.path} -> {e.status} ({type(e).__name__})")
        return web.json_response({"message": e.message}, status=e.status)
    except web.HTTPException:
        raise
    except Exception:
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return web.json_response({"message": "Internal server error"}, status=500)


async def _run(request: web.Request, method: str, *args: Any) -> Any:
    service = request.app[SERVICE_KEY]
    call = functools.partial(getattr(service, method), *args)
    return await asyncio.get_running_loop().run_in_executor(None, call)


async def _body(request: web.Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise InvalidRequest("Request body must be JSON")
    if not isinstance(body, dict):
        raise InvalidRequest("Request body must be a JSON object")
    return body


def _bearer(request: web.Request) -> str:
    header = request.headers.get("Authorization", "")
    if not header.startswith(BEARER_PREFIX):
        raise InvalidAccessToken("Access token required")
    return header[len(BEARER_PREFIX):]


def _tokens(pair: TokenPair) -> Dict[str, str]:
    return {"accessToken": pair.access_token, "refreshToken": pair.refresh_token}


async def health(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok", "service": SERVICE_NAME, "version": SERVICE_VERSION})


async def register(request: web.Request) -> web.Response:
    body = await _body(request)
    role = body.get("role") or PRINCIPAL_USER
    if role not in SELF_SERVICE_ROLES:
        raise InvalidRequest(f"Cannot self-register as {role!r}")
    principal, pair = await _run(
        request,
        "register",
        body.get("firstName"),
        body.get("lastName"),
        body.get("email"),
        body.get("phone"),
        body.get("password"),
        role,
    )
    return web.json_response(
        {"message": "Registered successfully", "user": principal.to_public_dict(), **_tokens(pair)},
        status=201,
    )


async def login(request: web.Request) -> web.Response:
    body = await _body(request)
    principal, pair = await _run(request, "login", body.get("email"), body.get("password"))
    return web.json_response(
        {"message": "Login successful", "user": principal.to_public_dict(), **_tokens(pair)}
    )


async def refresh_token(request: web.Request) -> web.Response:
    body = await _body(request)
    pair = await _run(request, "refresh", body.get("refreshToken"))
    return web.json_response({"message": "Token refreshed successfully", **_tokens(pair)})


async def logout(request: web.Request) -> web.Response:
    body = await _body(request)
    await _run(request, "logout", body.get("refreshToken"))
    return web.json_response({"message": "Logout successful"})


async def me(request: web.Request) -> web.Response:
    principal = await _run(request, "me", _bearer(request))
    return web.json_response({"user": principal.to_public_dict()})


async def change_password(request: web.Request) -> web.Response:
    principal = await _run(request, "me", _bearer(request))
    body = await _body(request)
    await _run(
        request,
        "change_password",
        principal.principal_id,
        body.get("currentPassword"),
        body.get("newPassword"),
    )
    return web.json_response({"message": "Password changed successfully. Please login again."})


async def forgot_password(request: web.Request) -> web.Response:
    body = await _body(request)
    await _run(request, "forgot_password", body.get("email"))
    return web.json_response({"message": "If the email exists, a reset link has been sent"})


async def reset_password(request: web.Request) -> web.Response:
    body = await _body(request)
    await _run(request, "reset_password", body.get("token"), body.get("newPassword"))
    return web.json_response(
        {"message": "Password reset successful. Please login with your new password."}
    )


def create_app(service: AuthService) -> web.Application:
    """
    Build the aiohttp application

    Args:
        service: Wired AuthService

    Returns:
        web.Application ready for web.run_app or a test client
    """
    app = web.Application(middlewares=[error_middleware])
    app[SERVICE_KEY] = service

    app.router.add_get("/health", health)
    app.router.add_post(f"{API_PREFIX}/register", register)
    app.router.add_post(f"{API_PREFIX}/login", login)
    app.router.add_post(f"{API_PREFIX}/refresh-token", refresh_token)
    app.router.add_post(f"{API_PREFIX}/logout", logout)
    app.router.add_get(f"{API_PREFIX}/me", me)
    app.router.add_post(f"{API_PREFIX}/change-password", change_password)
    app.router.add_post(f"{API_PREFIX}/forgot-password", forgot_password)
    app.router.add_post(f"{API_PREFIX}/reset-password", reset_password)

    logger.info(f"HTTP app created ({len(app.router.routes())} routes)")
    return app
