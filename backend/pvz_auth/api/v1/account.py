"""Endpoints for authenticated callers."""

from __future__ import annotations

from flask import Blueprint

from pvz_auth.api.deps import current_context, json_response, require_auth, require_roles, timing
from pvz_auth.schemas import ClaimsSchema
from pvz_auth.services._shared.context import claims_from
from pvz_auth.services.auth.dto import UserRole

bp = Blueprint("account", __name__)

claims_schema = ClaimsSchema()


@bp.get("/me")
@require_auth
@timing
def me():
    """Return the verified claims of the caller."""

    return json_response(claims_schema.dump(claims_from(current_context())))


@bp.get("/moderation/ping")
@require_auth
@require_roles(UserRole.MODERATOR)
@timing
def moderation_ping():
    """Role-gated probe: only moderators get through."""

    claims = claims_from(current_context())
    return json_response({"status": "ok", "role": claims.role})
