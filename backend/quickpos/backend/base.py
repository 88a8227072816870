# Overview: Collaborator contracts for the external data and auth backend.

"""
Backend collaborator interfaces.

The POS core never talks to a database or identity provider directly. It
goes through two narrow interfaces:

- QueryBackend: table-oriented select/single/insert/update/delete over plain
  dict rows (snake_case keys, string ids, Decimal money, ISO-8601 'Z'
  timestamps).
- AuthBackend: sessions and account provisioning.

FILTERS: a mapping of column -> value.
- "column": value       equality (None means IS NULL)
- "column__gte": value  greater than or equal
- "column__lt": value   strictly less than
- "column__in": values  membership in a collection

ERRORS: every failure raises BackendError (or a subclass). The message is
the backend's own and callers pass it through verbatim.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping


class BackendError(Exception):
    """An external backend call failed."""


class NotFoundError(BackendError):
    """single() matched zero rows."""


class AmbiguousResultError(BackendError):
    """single() matched more than one row."""


class InvalidCredentialsError(BackendError):
    """sign_in() rejected the email/password pair."""


FILTER_OPERATORS = ("gte", "lt", "in")


def split_filter_key(key: str) -> tuple[str, str]:
    """'created_at__gte' -> ('created_at', 'gte'); 'name' -> ('name', 'eq')."""
    column, sep, op = key.rpartition("__")
    if sep and op in FILTER_OPERATORS:
        return column, op
    return key, "eq"


class QueryBackend(ABC):
    """Table-oriented data access."""

    @abstractmethod
    def select(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        *,
        order_by: str | None = None,
        desc: bool = False,
    ) -> list[dict]:
        ...

    def single(self, table: str, filters: Mapping[str, Any] | None = None) -> dict:
        """Exactly one row or an error: NotFoundError / AmbiguousResultError."""
        rows = self.select(table, filters)
        if not rows:
            raise NotFoundError(f"No rows found in {table}")
        if len(rows) > 1:
            raise AmbiguousResultError(f"Multiple rows found in {table}")
        return rows[0]

    @abstractmethod
    def insert(self, table: str, rows: Iterable[Mapping[str, Any]]) -> list[dict]:
        """Insert rows; returns them as stored (ids and created_at filled in)."""

    @abstractmethod
    def update(self, table: str, patch: Mapping[str, Any], filters: Mapping[str, Any]) -> list[dict]:
        """Apply patch to matching rows; returns the updated rows (possibly empty)."""

    @abstractmethod
    def delete(self, table: str, filters: Mapping[str, Any]) -> None:
        ...


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str

    def to_dict(self) -> dict:
        return {"id": self.id, "email": self.email}


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    user: AuthUser
    expires_at: datetime


class AuthBackend(ABC):
    """Identity provider: sessions plus admin account management."""

    @abstractmethod
    def get_session(self, access_token: str | None) -> AuthSession | None:
        """Resolve a token to a live session, or None."""

    @abstractmethod
    def sign_in(self, email: str, password: str) -> AuthSession:
        """Raises InvalidCredentialsError on a bad email/password."""

    @abstractmethod
    def sign_out(self, access_token: str) -> None:
        ...

    @abstractmethod
    def create_user(self, email: str, password: str) -> AuthUser:
        ...

    @abstractmethod
    def delete_user(self, user_id: str) -> None:
        ...
