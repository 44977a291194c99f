# -*- coding: utf-8 -*-
"""OAuth token exchange proxy for fitness device APIs."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from .models import RefreshTokenRequest, RevokeTokenRequest, TokenExchangeRequest
from .providers import FITBIT_REVOKE_URL, GOOGLE_REVOKE_URL, FitnessProvider, get_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/fitness", tags=["Fitness Auth"])

_FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}


def get_http_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Upstream transport; overridden in tests."""
    return None


def _error(status_code: int, message: str, details: Any = None) -> JSONResponse:
    body: Dict[str, Any] = {"error": message}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


def _upstream_details(exc: Exception) -> Any:
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            return exc.response.json()
        except ValueError:
            return exc.response.text
    return str(exc)


async def _token_request(
    provider: FitnessProvider,
    form: Dict[str, str],
    transport: Optional[httpx.AsyncBaseTransport],
) -> Dict[str, Any]:
    data = {**form, "client_id": provider.client_id or "", "client_secret": provider.client_secret or ""}
    async with httpx.AsyncClient(timeout=30, follow_redirects=True, transport=transport) as client:
        resp = await client.post(provider.token_url, data=data, headers=_FORM_HEADERS)
        resp.raise_for_status()
        return resp.json()


@router.post("/token-exchange", summary="Exchange an authorization code for tokens")
async def token_exchange(
    request: TokenExchangeRequest,
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
):
    if not request.code or not request.provider or not request.redirect_uri:
        return _error(400, "Missing required parameters")
    provider = get_provider(request.provider)
    if provider is None:
        return _error(400, "Unsupported provider")

    try:
        token = await _token_request(
            provider,
            {"grant_type": "authorization_code", "code": request.code, "redirect_uri": request.redirect_uri},
            transport,
        )
    except (httpx.HTTPError, ValueError) as exc:
        details = _upstream_details(exc)
        logger.error("Token exchange error: %s", details)
        return _error(500, "Failed to exchange token", details)

    return {
        "provider": provider.name,
        "accessToken": token.get("access_token"),
        "refreshToken": token.get("refresh_token"),
        "expiresIn": token.get("expires_in"),
        "tokenType": token.get("token_type"),
    }


@router.post("/refresh-token", summary="Refresh an access token")
async def refresh_token(
    request: RefreshTokenRequest,
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
):
    if not request.refresh_token or not request.provider:
        return _error(400, "Missing required parameters")
    provider = get_provider(request.provider)
    if provider is None:
        return _error(400, "Unsupported provider")

    try:
        token = await _token_request(
            provider,
            {"grant_type": "refresh_token", "refresh_token": request.refresh_token},
            transport,
        )
    except (httpx.HTTPError, ValueError) as exc:
        details = _upstream_details(exc)
        logger.error("Token refresh error: %s", details)
        return _error(500, "Failed to refresh token", details)

    return {
        "accessToken": token.get("access_token"),
        # some providers do not rotate the refresh token
        "refreshToken": token.get("refresh_token") or request.refresh_token,
        "expiresIn": token.get("expires_in"),
        "tokenType": token.get("token_type"),
    }


@router.post("/revoke-token", summary="Revoke a token (best effort)")
async def revoke_token(
    request: RevokeTokenRequest,
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
):
    if not request.token or not request.provider:
        return _error(400, "Missing required parameters")
    provider = get_provider(request.provider)
    if provider is None:
        return _error(400, "Unsupported provider")

    try:
        async with httpx.AsyncClient(timeout=30, follow_redirects=True, transport=transport) as client:
            if provider.name == "fitbit":
                resp = await client.post(
                    FITBIT_REVOKE_URL,
                    data={"token": request.token},
                    headers=_FORM_HEADERS,
                    auth=(provider.client_id or "", provider.client_secret or ""),
                )
                resp.raise_for_status()
            elif provider.name == "google_fit":
                resp = await client.get(GOOGLE_REVOKE_URL, params={"token": request.token})
                resp.raise_for_status()
            # Garmin has no revocation endpoint
    except httpx.HTTPError as exc:
        # the stored connection is removed by the caller either way
        logger.error("Token revocation error: %s", _upstream_details(exc))
    return {"success": True}
