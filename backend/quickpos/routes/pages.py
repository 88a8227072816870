# Overview: Page loads (products, sales history) and the login page.

"""
Page routes.

Markup is out of scope: each page returns the JSON payload a template or
client would render.

SECURITY: "/" and "/sales" require a session and a store membership;
"/login" is public and bounces authenticated visitors back to "/".
"""

from flask import Blueprint, current_app, g, jsonify, make_response, redirect, request, session

from ..backend import BackendError, InvalidCredentialsError, get_auth_backend, get_query_backend
from ..decorators import load_auth_session, require_auth, require_store
from ..formatting import format_currency
from ..services.catalog_service import load_catalog
from ..services.sales_service import list_sales
from ..state import Cart, JsonFileStorage
from ..time_utils import PERIODS

pages_bp = Blueprint("pages", __name__)

CART_SESSION_KEY = "cart"


def catalog_storage():
    """Persisted catalog snapshot, or None when CATALOG_STORAGE_DIR is unset."""
    directory = current_app.config.get("CATALOG_STORAGE_DIR")
    return JsonFileStorage(directory) if directory else None


@pages_bp.get("/")
@require_auth
@require_store
def products_page():
    """
    Product page load.

    Query params:
    - q: str (optional) - case-insensitive name search
    """
    search = request.args.get("q", "")
    catalog, from_fallback = load_catalog(
        get_query_backend(),
        g.store_id,
        storage=catalog_storage(),
        search=search,
    )
    cart = Cart.from_list(session.get(CART_SESSION_KEY))

    return jsonify({
        "products": [p.to_dict() for p in catalog.list()],
        "available": [p.to_dict() for p in catalog.available()],
        "search": search,
        "offline": from_fallback,
        "cart": cart.summary(),
        "user": g.current_user.to_dict(),
    })


@pages_bp.get("/sales")
@require_auth
@require_store
def sales_page():
    """
    Sales history.

    Query params:
    - period: today | week | month | all (default all)
    """
    period = request.args.get("period", "all")
    if period not in PERIODS:
        return jsonify({"error": f"period must be one of: {', '.join(PERIODS)}"}), 400

    try:
        history = list_sales(get_query_backend(), g.store_id, period=period)
    except BackendError:
        current_app.logger.exception("Error loading sales")
        history = {"sales": [], "period": period, "total": 0}

    for sale in history["sales"]:
        sale["total_display"] = format_currency(sale["total"])
    history["total_display"] = format_currency(history["total"])
    return jsonify(history)


@pages_bp.get("/login")
def login_page():
    if load_auth_session() is not None:
        return redirect("/", code=303)
    return jsonify({"page": "login"})


@pages_bp.post("/login")
def login_route():
    """
    Sign in with form fields email/password.

    On success the access token is set as an HttpOnly cookie and the
    browser is sent to "/".
    """
    email = (request.form.get("email") or "").strip()
    password = request.form.get("password") or ""

    if not email or not password:
        return jsonify({"success": False, "error": "Email and password are required"}), 400

    try:
        auth_session = get_auth_backend().sign_in(email, password)
    except InvalidCredentialsError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except BackendError as e:
        current_app.logger.error("Sign-in failed: %s", e)
        return jsonify({"success": False, "error": str(e)}), 502

    response = make_response(redirect("/", code=303))
    response.set_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        auth_session.access_token,
        expires=auth_session.expires_at,
        path="/",
        httponly=True,
        samesite="Lax",
        secure=not current_app.debug and not current_app.testing,
    )
    return response
