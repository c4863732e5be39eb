from functools import wraps
from typing import Callable, TypeVar, cast

from flask import current_app, session

from app.utils.http import error_response

F = TypeVar("F", bound=Callable[..., object])

DEFAULT_USER_ID = 1


def api_login_required(view_func: F) -> F:
    """Ensure the user is authenticated for API endpoints (returns JSON 401).

    With ``LOGIN_DISABLED`` set, anonymous requests act as the default user.
    """

    @wraps(view_func)
    def wrapped(*args, **kwargs):
        if "user_id" not in session and not current_app.config.get("LOGIN_DISABLED", False):
            return error_response(
                "Authentication required",
                status=401,
                details={"code": "UNAUTHORIZED"},
            )
        return view_func(*args, **kwargs)

    return cast(F, wrapped)


def current_user_id() -> int | None:
    user_id = session.get("user_id")
    if user_id is not None:
        return int(user_id)
    if current_app.config.get("LOGIN_DISABLED", False):
        return DEFAULT_USER_ID
    return None


def current_username() -> str | None:
    return session.get("user")
