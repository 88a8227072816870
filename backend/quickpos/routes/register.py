# Overview: Internal JSON endpoint that provisions an account and its store membership.

from flask import Blueprint, current_app, jsonify, request

from ..backend import get_auth_backend, get_query_backend
from ..services.registration_service import RegistrationError, register_user

register_bp = Blueprint("register", __name__, url_prefix="/api/internal")


@register_bp.post("/register")
def register_route():
    """
    Create a user in an existing store.

    Body: {"email", "password", "storeId"}

    Responses:
    - 201 {"success": true, "user": {"id", "email", "storeId"}}
    - 400 {"error"} validation failure, unknown store, account rejected
    - 500 {"error"} membership failure (account rolled back) or unexpected error
    """
    payload = request.get_json(silent=True)
    try:
        user = register_user(get_query_backend(), get_auth_backend(), payload)
    except RegistrationError as e:
        return jsonify({"error": str(e)}), e.status
    except Exception:
        current_app.logger.exception("Registration failed")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"success": True, "user": user}), 201
