# Overview: Service-layer operations for account provisioning with compensating cleanup.

"""
Registration Service

Creates an auth account and the store membership that makes it usable.

ORDER:
1. Validate payload                      -> 400 on failure
2. Verify the store exists               -> 400, no account created
3. Create the auth account               -> 400 with the provider message
4. Insert the store membership           -> on failure, delete the account
                                            (compensating action) and 500

An account without a membership would authenticate but have no tenant, so
step 4 is the one place in the system with an explicit rollback. If the
compensating delete fails too, that is logged and the same 500 is returned.
"""

from __future__ import annotations

import logging

from ..backend import AuthBackend, BackendError, QueryBackend
from ..validation import ValidationError, validate_registration

logger = logging.getLogger(__name__)


class RegistrationError(Exception):
    """Registration failure with the HTTP status to report."""

    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.status = status


def register_user(query: QueryBackend, auth: AuthBackend, payload) -> dict:
    """
    Provision {email, password, storeId}.

    Returns {"id", "email", "storeId"} for the new account.

    Raises RegistrationError.
    """
    try:
        email, password, store_id = validate_registration(payload)
    except ValidationError as e:
        raise RegistrationError(str(e), 400)

    try:
        query.single("stores", {"id": store_id})
    except BackendError:
        raise RegistrationError("Store not found", 400)

    try:
        user = auth.create_user(email, password)
    except BackendError as e:
        raise RegistrationError(str(e), 400)

    try:
        query.insert("store_memberships", [{"user_id": user.id, "store_id": store_id}])
    except BackendError as e:
        logger.error("Membership insert failed for user %s in store %s: %s", user.id, store_id, e)
        try:
            auth.delete_user(user.id)
        except BackendError as cleanup_error:
            logger.error("Compensating delete of user %s failed: %s", user.id, cleanup_error)
        raise RegistrationError("Failed to create store membership", 500)

    return {"id": user.id, "email": user.email, "storeId": store_id}
