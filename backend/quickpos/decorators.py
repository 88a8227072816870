# Overview: Authorization gate decorators for page, action and cart routes.

from functools import wraps
from flask import current_app, g, jsonify, redirect, request

from .backend import BackendError, get_auth_backend, get_query_backend
from .services.membership_service import AuthError, resolve_store_id

LOGIN_PATH = "/login"


def current_access_token() -> str | None:
    """Bearer token from the Authorization header, else the auth cookie."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1]
    return request.cookies.get(current_app.config["AUTH_COOKIE_NAME"])


def load_auth_session():
    return get_auth_backend().get_session(current_access_token())


def require_auth(f):
    """
    Require a live session.

    Sets the following Flask g attributes:
    - g.auth_session: the AuthSession
    - g.current_user: its AuthUser

    Redirects 303 to /login when there is no valid session.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        session = load_auth_session()
        if session is None:
            return redirect(LOGIN_PATH, code=303)

        g.auth_session = session
        g.current_user = session.user

        return f(*args, **kwargs)

    return decorated_function


def require_store(f):
    """
    Resolve the caller's store membership into g.store_id.

    Must be applied after @require_auth. Responds 403 with the uniform
    {success: false, error} shape when the user has no single store.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not hasattr(g, "current_user"):
            return redirect(LOGIN_PATH, code=303)

        try:
            g.store_id = resolve_store_id(get_query_backend(), g.current_user.id)
        except AuthError as e:
            return jsonify({"success": False, "error": str(e)}), 403
        except BackendError as e:
            current_app.logger.error("Membership lookup failed: %s", e)
            return jsonify({"success": False, "error": str(e)}), 502

        return f(*args, **kwargs)

    return decorated_function
