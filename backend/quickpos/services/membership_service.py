# Overview: Service-layer operations for store membership; resolves a user's tenant.

"""
Store membership resolution.

Every authenticated user belongs to exactly one store. The lookup uses
single-row semantics: zero memberships and several memberships are both
failures; the system never picks one of several.
"""

from ..backend import AmbiguousResultError, NotFoundError, QueryBackend


class AuthError(Exception):
    """Raised when the caller is not authenticated or not authorized for a tenant."""


class NoStoreMembershipError(AuthError):
    """Raised when the user has no usable store membership."""


def resolve_store_id(backend: QueryBackend, user_id: str | None) -> str:
    """
    Return the store id for user_id.

    Raises:
        AuthError: user_id is missing
        NoStoreMembershipError: zero or several memberships
        BackendError: the lookup itself failed
    """
    if not user_id:
        raise AuthError("User not authenticated")
    try:
        membership = backend.single("store_memberships", {"user_id": user_id})
    except NotFoundError:
        raise NoStoreMembershipError("User is not a member of any store")
    except AmbiguousResultError:
        raise NoStoreMembershipError("User belongs to more than one store")
    return membership["store_id"]
