# Overview: Form actions for the products page; each returns {success, ...} or {success: false, error}.

"""
Form actions.

All actions take form-encoded bodies. Failures never raise: they return
{"success": false, "error": "..."} with a 4xx/5xx status. The one exception
is a successful logout, which redirects to /login.
"""

from flask import Blueprint, current_app, g, jsonify, make_response, redirect, request, session

from ..backend import BackendError, get_auth_backend, get_query_backend
from ..decorators import LOGIN_PATH, require_auth, require_store
from ..services import catalog_service, sales_service
from ..services.catalog_service import ProductNotFoundError
from ..services.sales_service import SaleError
from ..validation import ValidationError, parse_product_form
from .pages import CART_SESSION_KEY

actions_bp = Blueprint("actions", __name__, url_prefix="/actions")

SALE_ERROR_STATUS = {
    "INVALID_INPUT": 400,
    "NOT_AUTHENTICATED": 401,
    "NO_STORE_MEMBERSHIP": 403,
    "SALE_CREATE_FAILED": 502,
    "LINE_ITEM_INSERT_FAILED": 502,
    "STOCK_UPDATE_FAILED": 502,
}


def sale_error_response(e: SaleError):
    body = {"success": False, "error": str(e), "code": e.code}
    if e.details:
        body["details"] = e.details
    return jsonify(body), SALE_ERROR_STATUS.get(e.code, 500)


@actions_bp.post("/createProduct")
@require_auth
@require_store
def create_product_action():
    try:
        patch = parse_product_form(request.form)
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400

    try:
        product = catalog_service.create_product(get_query_backend(), g.store_id, patch)
    except BackendError as e:
        current_app.logger.error("Error creating product: %s", e)
        return jsonify({"success": False, "error": str(e)}), 502

    return jsonify({"success": True, "product": product}), 201


@actions_bp.post("/updateProduct")
@require_auth
@require_store
def update_product_action():
    try:
        patch = parse_product_form(request.form, require_id=True)
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400

    product_id = patch.pop("id")
    try:
        product = catalog_service.update_product(get_query_backend(), g.store_id, product_id, patch)
    except ProductNotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except BackendError as e:
        current_app.logger.error("Error updating product %s: %s", product_id, e)
        return jsonify({"success": False, "error": str(e)}), 502

    return jsonify({"success": True, "product": product})


@actions_bp.post("/deleteProduct")
@require_auth
@require_store
def delete_product_action():
    """Soft delete: the row stays with deleted_at set."""
    product_id = (request.form.get("id") or "").strip()
    if not product_id:
        return jsonify({"success": False, "error": "Product ID is required"}), 400

    try:
        catalog_service.delete_product(get_query_backend(), g.store_id, product_id)
    except ProductNotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except BackendError as e:
        current_app.logger.error("Error deleting product %s: %s", product_id, e)
        return jsonify({"success": False, "error": str(e)}), 502

    return jsonify({"success": True})


@actions_bp.post("/processSale")
@require_auth
def process_sale_action():
    """
    Record a sale from form fields items (JSON) and total.

    Store membership is resolved inside the sale sequence, so this route
    does not use @require_store.
    """
    try:
        sale = sales_service.process_sale(
            get_query_backend(),
            user_id=g.current_user.id,
            items=request.form.get("items"),
            total=request.form.get("total"),
        )
    except SaleError as e:
        return sale_error_response(e)

    return jsonify({"success": True, "sale": sale}), 201


@actions_bp.post("/logout")
@require_auth
def logout_action():
    try:
        get_auth_backend().sign_out(g.auth_session.access_token)
    except BackendError as e:
        current_app.logger.error("Sign-out failed: %s", e)
        return jsonify({"success": False, "error": str(e)}), 502

    session.pop(CART_SESSION_KEY, None)
    response = make_response(redirect(LOGIN_PATH, code=303))
    response.delete_cookie(current_app.config["AUTH_COOKIE_NAME"], path="/")
    return response
