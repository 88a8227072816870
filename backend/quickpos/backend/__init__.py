"""
Backend wiring.

create_app() builds one Backends bundle per application and stores it in
app.extensions["quickpos"]; request code fetches it through the accessors
below rather than through module-level singletons.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from .base import (
    AmbiguousResultError,
    AuthBackend,
    AuthSession,
    AuthUser,
    BackendError,
    InvalidCredentialsError,
    NotFoundError,
    QueryBackend,
)

EXTENSION_KEY = "quickpos"


@dataclass
class Backends:
    query: QueryBackend
    auth: AuthBackend


def build_backends(kind: str, *, bcrypt_rounds: int = 12) -> Backends:
    if kind == "sql":
        from .sql import SqlAuthBackend, SqlQueryBackend
        return Backends(query=SqlQueryBackend(), auth=SqlAuthBackend(bcrypt_rounds=bcrypt_rounds))
    if kind == "memory":
        from .memory import MemoryAuthBackend, MemoryQueryBackend
        return Backends(query=MemoryQueryBackend(), auth=MemoryAuthBackend(bcrypt_rounds=bcrypt_rounds))
    raise ValueError(f"Unknown QUICKPOS_BACKEND: {kind!r} (expected 'sql' or 'memory')")


def get_backends() -> Backends:
    return current_app.extensions[EXTENSION_KEY]


def get_query_backend() -> QueryBackend:
    return get_backends().query


def get_auth_backend() -> AuthBackend:
    return get_backends().auth


__all__ = [
    "AmbiguousResultError", "AuthBackend", "AuthSession", "AuthUser", "BackendError",
    "Backends", "InvalidCredentialsError", "NotFoundError", "QueryBackend",
    "build_backends", "get_auth_backend", "get_backends", "get_query_backend",
]
