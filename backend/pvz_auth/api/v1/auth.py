"""Authentication endpoints: registration, login and role-only test login."""

from __future__ import annotations

from flask import Blueprint, request

from pvz_auth.api.deps import (
    client_context,
    get_auth_service,
    json_response,
    no_store,
    set_refresh_cookie,
    timing,
)
from pvz_auth.schemas import (
    DummyLoginSchema,
    LoginSchema,
    RegisterSchema,
    TokenResponseSchema,
    UserSchema,
)
from pvz_auth.services.auth.dto import LoginIn, RegisterIn

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
dummy_login_schema = DummyLoginSchema()
user_schema = UserSchema()
token_schema = TokenResponseSchema()


@bp.post("/dummyLogin")
@timing
def dummy_login():
    """Issue an access token for the requested role without credentials."""

    data = dummy_login_schema.load(request.get_json(silent=True) or {})
    token = get_auth_service().dummy_login(data["role"])
    return no_store(json_response(token_schema.dump({"token": token})))


@bp.post("/register")
@timing
def register():
    """Register a new user and return the created representation."""

    data = register_schema.load(request.get_json(silent=True) or {})
    user = get_auth_service().register_user(
        RegisterIn(email=data["email"], password=data["password"], role=data["role"])
    )
    return json_response(user_schema.dump(user), status=201)


@bp.post("/login")
@timing
def login():
    """Authenticate credentials; return the access token and set the refresh cookie."""

    data = login_schema.load(request.get_json(silent=True) or {})
    user_agent, ip = client_context()
    pair = get_auth_service().login_user(
        LoginIn(email=data["email"], password=data["password"], user_agent=user_agent, ip=ip)
    )
    response = json_response(token_schema.dump({"token": pair.access_token}))
    set_refresh_cookie(response, pair.refresh_token)
    return no_store(response)
