from __future__ import annotations

from flask import Blueprint, Response, session

from app.blueprints.api._common import get_auth_manager, get_user_id, parse_body, success as _success
from app.domain.exceptions import NotFoundError
from app.schemas import LoginRequest, RegisterRequest
from app.security.auth import api_login_required, current_username
from app.utils.http import safe_route

auth_bp = Blueprint("auth", __name__)


def _start_session(user: dict, *, remember_me: bool = False) -> None:
    # Regenerate the session to prevent fixation
    session.clear()
    session["user"] = user["username"]
    session["user_id"] = user["id"]
    session.permanent = remember_me


@auth_bp.post("/register")
@safe_route("Registration failed")
def register() -> Response:
    body = parse_body(RegisterRequest)
    user = get_auth_manager().register_user(body.username, body.password, email=body.email)
    _start_session(user)
    return _success({"user": user}, 201)


@auth_bp.post("/login")
@safe_route("Login failed")
def login() -> Response:
    body = parse_body(LoginRequest)
    user = get_auth_manager().authenticate_user(body.username.strip(), body.password)
    _start_session(user, remember_me=body.remember_me)
    return _success({"user": user})


@auth_bp.post("/logout")
@safe_route("Logout failed")
def logout() -> Response:
    username = session.pop("user", None)
    session.pop("user_id", None)
    get_auth_manager().logout(username)
    return _success({"logged_out": bool(username)})


@auth_bp.get("/me")
@api_login_required
@safe_route("Failed to load current user")
def me() -> Response:
    user_id = get_user_id()
    user = get_auth_manager().get_user_by_id(user_id)
    if user is None:
        if current_username() is None:
            # LOGIN_DISABLED fallback user without an account row
            return _success({"user": {"id": user_id, "username": None, "email": None}})
        raise NotFoundError(f"User {user_id} not found")
    return _success({"user": user})
