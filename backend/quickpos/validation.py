from __future__ import annotations

import json
import re
import uuid
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping


# Maximum price: 9,999,999.99
# Keeps Numeric(12, 2) columns from overflowing
MAX_PRICE = Decimal("9999999.99")
CENT = Decimal("0.01")

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8
# bcrypt refuses secrets longer than this
MAX_PASSWORD_BYTES = 72


class ValidationError(ValueError):
    """400-level input problem."""


def parse_money(value: Any, field: str) -> Decimal:
    """
    Coerce form/JSON input into a non-negative Decimal with cent precision.

    Rejects booleans, blanks, NaN and infinities.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount < 0:
        raise ValidationError(f"{field} must be >= 0")
    if amount > MAX_PRICE:
        raise ValidationError(f"{field} cannot exceed {MAX_PRICE}")
    return amount.quantize(CENT)


def parse_int(value: Any, field: str) -> int:
    # Integers - strict validation to reject floats and scientific notation
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValidationError(f"{field} must be an integer")


def parse_product_form(form: Mapping[str, Any], *, require_id: bool = False) -> dict:
    """
    Validate the createProduct / updateProduct form.

    Returns a patch with name, price and stock (plus id when require_id).
    Any problem collapses into the single "Invalid product data" message the
    product actions report.
    """
    try:
        name = (form.get("name") or "").strip()
        if not name:
            raise ValidationError("name cannot be blank")
        price = parse_money(form.get("price"), "price")
        stock = parse_int(form.get("stock"), "stock")
        if stock < 0:
            raise ValidationError("stock must be >= 0")
        patch = {"name": name, "price": price, "stock": stock}
        if require_id:
            product_id = (form.get("id") or "").strip()
            if not product_id:
                raise ValidationError("id is required")
            patch["id"] = product_id
    except ValidationError:
        raise ValidationError("Invalid product data")
    return patch


@dataclass(frozen=True)
class SaleLineInput:
    product_id: str
    quantity: int
    price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


def parse_sale_payload(items_raw: Any, total_raw: Any) -> tuple[list[SaleLineInput], Decimal]:
    """
    Validate the processSale form fields.

    items_raw: JSON list of {"product": {"id", "price", ...}, "quantity"}
    total_raw: client-computed total; recomputed here and compared to the cent.
    """
    if not items_raw or total_raw is None or str(total_raw).strip() == "":
        raise ValidationError("Invalid sale data")
    try:
        total = parse_money(total_raw, "total")
    except ValidationError:
        raise ValidationError("Invalid sale data")

    if isinstance(items_raw, str):
        try:
            items = json.loads(items_raw)
        except ValueError:
            raise ValidationError("Invalid sale data")
    else:
        items = items_raw

    if not isinstance(items, list) or not items:
        raise ValidationError("Invalid sale data")

    lines: list[SaleLineInput] = []
    for i, item in enumerate(items):
        if not isinstance(item, dict) or not isinstance(item.get("product"), dict):
            raise ValidationError(f"Invalid sale item at position {i}")
        product = item["product"]
        product_id = product.get("id")
        if not product_id or not isinstance(product_id, str):
            raise ValidationError(f"Invalid sale item at position {i}")
        price = parse_money(product.get("price"), f"items[{i}].product.price")
        quantity = parse_int(item.get("quantity"), f"items[{i}].quantity")
        if quantity < 1:
            raise ValidationError(f"items[{i}].quantity must be >= 1")
        lines.append(SaleLineInput(product_id=product_id, quantity=quantity, price=price))

    expected = sum((line.line_total for line in lines), Decimal("0")).quantize(CENT)
    if expected != total:
        raise ValidationError(f"Sale total {total} does not match items total {expected}")

    return lines, total


def validate_registration(payload: Any) -> tuple[str, str, str]:
    """
    Validate {email, password, storeId} for the internal register endpoint.

    Collects every problem so the caller can report them together.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Validation failed: Invalid JSON payload")

    email = payload.get("email")
    password = payload.get("password")
    store_id = payload.get("storeId")

    problems = []
    if not isinstance(email, str) or not EMAIL_RE.match(email.strip()):
        problems.append("Invalid email address")
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        problems.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    elif len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        problems.append(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    try:
        uuid.UUID(str(store_id))
    except ValueError:
        problems.append("Invalid store ID")

    if problems:
        raise ValidationError(f"Validation failed: {', '.join(problems)}")

    return email.strip().lower(), password, str(store_id)
