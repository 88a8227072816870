# Overview: Cart endpoints; the Cart State lives in the signed session cookie.

from flask import Blueprint, current_app, g, jsonify, request, session

from ..backend import BackendError, get_query_backend
from ..decorators import require_auth, require_store
from ..services import sales_service
from ..services.catalog_service import ProductNotFoundError, get_product
from ..services.sales_service import SaleError
from ..state import Cart, Product
from ..validation import ValidationError, parse_int
from .actions import sale_error_response
from .pages import CART_SESSION_KEY

cart_bp = Blueprint("cart", __name__, url_prefix="/cart")


def load_cart() -> Cart:
    """Cart for this browser session; every change is written back to the session."""
    cart = Cart.from_list(session.get(CART_SESSION_KEY))
    cart.subscribe(lambda _items: session.__setitem__(CART_SESSION_KEY, cart.to_list()))
    return cart


def _product_id() -> str | None:
    return (request.form.get("product_id") or "").strip() or None


@cart_bp.get("")
@require_auth
def show_cart():
    return jsonify(load_cart().summary())


@cart_bp.post("/add")
@require_auth
@require_store
def add_to_cart():
    """Add one unit of an in-stock product (looked up in the caller's store)."""
    product_id = _product_id()
    if not product_id:
        return jsonify({"success": False, "error": "product_id is required"}), 400

    try:
        row = get_product(get_query_backend(), g.store_id, product_id)
    except ProductNotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except BackendError as e:
        current_app.logger.error("Error loading product %s: %s", product_id, e)
        return jsonify({"success": False, "error": str(e)}), 502

    product = Product.from_dict(row)
    if product.stock <= 0:
        return jsonify({"success": False, "error": "Product out of stock"}), 409

    cart = load_cart()
    cart.add(product)
    return jsonify({"success": True, "cart": cart.summary()})


@cart_bp.post("/remove")
@require_auth
def remove_from_cart():
    product_id = _product_id()
    if not product_id:
        return jsonify({"success": False, "error": "product_id is required"}), 400

    cart = load_cart()
    cart.remove(product_id)
    return jsonify({"success": True, "cart": cart.summary()})


@cart_bp.post("/quantity")
@require_auth
def set_cart_quantity():
    """Quantity <= 0 removes the item."""
    product_id = _product_id()
    if not product_id:
        return jsonify({"success": False, "error": "product_id is required"}), 400
    try:
        quantity = parse_int(request.form.get("quantity"), "quantity")
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400

    cart = load_cart()
    cart.set_quantity(product_id, quantity)
    return jsonify({"success": True, "cart": cart.summary()})


@cart_bp.post("/clear")
@require_auth
def clear_cart():
    cart = load_cart()
    cart.clear()
    return jsonify({"success": True, "cart": cart.summary()})


@cart_bp.post("/checkout")
@require_auth
def checkout():
    """
    Run the sale sequence on the current cart.

    The cart is cleared only when the sale fully succeeds; on any failure it
    is left as it was so the cashier can retry.
    """
    cart = load_cart()
    if cart.is_empty():
        return jsonify({"success": False, "error": "Cart is empty"}), 400

    payload = cart.sale_payload()
    try:
        sale = sales_service.process_sale(
            get_query_backend(),
            user_id=g.current_user.id,
            items=payload["items"],
            total=payload["total"],
        )
    except SaleError as e:
        return sale_error_response(e)

    cart.clear()
    return jsonify({"success": True, "sale": sale, "cart": cart.summary()}), 201
