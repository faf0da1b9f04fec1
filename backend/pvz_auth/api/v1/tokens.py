"""Refresh-token endpoints. The refresh cookie is scoped to this blueprint's path."""

from __future__ import annotations

from flask import Blueprint, Response

from pvz_auth.api.deps import (
    clear_refresh_cookie,
    client_context,
    get_auth_service,
    json_response,
    no_store,
    read_refresh_cookie,
    set_refresh_cookie,
    timing,
)
from pvz_auth.schemas import TokenResponseSchema
from pvz_auth.services.auth.dto import RefreshIn

bp = Blueprint("tokens", __name__)

token_schema = TokenResponseSchema()


def _refresh_in() -> RefreshIn:
    user_agent, ip = client_context()
    return RefreshIn(refresh_token=read_refresh_cookie(), user_agent=user_agent, ip=ip)


@bp.post("/refresh")
@timing
def refresh():
    """Rotate the refresh cookie and return a new access token."""

    pair = get_auth_service().refresh_tokens(_refresh_in())
    response = json_response(token_schema.dump({"token": pair.access_token}), status=201)
    set_refresh_cookie(response, pair.refresh_token)
    return no_store(response)


@bp.post("/logout")
@timing
def logout():
    """Revoke the presented refresh token (idempotent) and clear the cookie."""

    get_auth_service().logout(_refresh_in())
    return clear_refresh_cookie(Response(status=204))
