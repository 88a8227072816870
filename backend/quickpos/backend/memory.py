# Overview: In-process implementations of the backend collaborators.

"""
In-memory query and auth backends.

A table is a list of dict rows kept in insertion order. Every read returns
copies so callers can never mutate stored state by accident.

Used by the test suite and by QUICKPOS_BACKEND=memory for demos.
"""

from __future__ import annotations

import copy
import uuid
from datetime import datetime
from typing import Any, Iterable, Mapping

from quickpos.time_utils import parse_iso_datetime, to_utc_z, utcnow
from .base import (
    AuthBackend,
    AuthSession,
    AuthUser,
    BackendError,
    InvalidCredentialsError,
    QueryBackend,
    split_filter_key,
)
from .passwords import (
    SESSION_ABSOLUTE_TIMEOUT,
    generate_token,
    hash_password,
    hash_token,
    verify_password,
)


def _comparable(row_value: Any, filter_value: Any) -> Any:
    # Timestamps are stored as ISO strings; compare as datetimes when asked to
    if isinstance(filter_value, datetime) and isinstance(row_value, str):
        return parse_iso_datetime(row_value)
    return row_value


def _matches(row: Mapping[str, Any], filters: Mapping[str, Any] | None) -> bool:
    for key, expected in (filters or {}).items():
        column, op = split_filter_key(key)
        actual = row.get(column)
        if op == "eq":
            if expected is None:
                if actual is not None:
                    return False
            elif actual != expected:
                return False
        elif op == "in":
            if actual not in set(expected):
                return False
        else:
            if actual is None:
                return False
            actual = _comparable(actual, expected)
            if op == "gte" and not actual >= expected:
                return False
            if op == "lt" and not actual < expected:
                return False
    return True


class MemoryQueryBackend(QueryBackend):
    """table -> list of rows."""

    def __init__(self, tables: Mapping[str, list[dict]] | None = None):
        self.tables: dict[str, list[dict]] = {
            name: [dict(r) for r in rows] for name, rows in (tables or {}).items()
        }

    def _table(self, table: str) -> list[dict]:
        return self.tables.setdefault(table, [])

    def select(self, table, filters=None, *, order_by=None, desc=False):
        rows = [copy.deepcopy(r) for r in self._table(table) if _matches(r, filters)]
        if order_by:
            present = [r for r in rows if r.get(order_by) is not None]
            missing = [r for r in rows if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=desc)
            rows = present + missing
        return rows

    def insert(self, table: str, rows: Iterable[Mapping[str, Any]]) -> list[dict]:
        now = to_utc_z(utcnow())
        stored = []
        for row in rows:
            record = dict(row)
            record.setdefault("id", str(uuid.uuid4()))
            record.setdefault("created_at", now)
            if any(r["id"] == record["id"] for r in self._table(table)):
                raise BackendError(f"duplicate key value violates unique constraint on {table}.id")
            stored.append(record)
        self._table(table).extend(stored)
        return [copy.deepcopy(r) for r in stored]

    def update(self, table, patch, filters):
        updated = []
        for row in self._table(table):
            if _matches(row, filters):
                row.update(patch)
                updated.append(copy.deepcopy(row))
        return updated

    def delete(self, table, filters):
        self.tables[table] = [r for r in self._table(table) if not _matches(r, filters)]


class MemoryAuthBackend(AuthBackend):
    """Accounts and sessions held in dicts; passwords still bcrypt-hashed."""

    def __init__(self, *, bcrypt_rounds: int = 12):
        self.bcrypt_rounds = bcrypt_rounds
        self.users: dict[str, dict] = {}
        self.sessions: dict[str, dict] = {}  # token_hash -> {user_id, expires_at}

    def _find_by_email(self, email: str) -> dict | None:
        email = email.strip().lower()
        return next((u for u in self.users.values() if u["email"] == email), None)

    def create_user(self, email: str, password: str) -> AuthUser:
        email = email.strip().lower()
        if self._find_by_email(email):
            raise BackendError("A user with this email address has already been registered")
        user_id = str(uuid.uuid4())
        self.users[user_id] = {
            "id": user_id,
            "email": email,
            "password_hash": hash_password(password, rounds=self.bcrypt_rounds),
        }
        return AuthUser(id=user_id, email=email)

    def delete_user(self, user_id: str) -> None:
        if self.users.pop(user_id, None) is None:
            raise BackendError("User not found")
        self.sessions = {k: s for k, s in self.sessions.items() if s["user_id"] != user_id}

    def sign_in(self, email: str, password: str) -> AuthSession:
        user = self._find_by_email(email or "")
        if not user or not verify_password(password or "", user["password_hash"]):
            raise InvalidCredentialsError("Invalid login credentials")
        token = generate_token()
        expires_at = utcnow() + SESSION_ABSOLUTE_TIMEOUT
        self.sessions[hash_token(token)] = {"user_id": user["id"], "expires_at": expires_at}
        return AuthSession(
            access_token=token,
            user=AuthUser(id=user["id"], email=user["email"]),
            expires_at=expires_at,
        )

    def sign_out(self, access_token: str) -> None:
        self.sessions.pop(hash_token(access_token), None)

    def get_session(self, access_token):
        if not access_token:
            return None
        record = self.sessions.get(hash_token(access_token))
        if not record or record["expires_at"] <= utcnow():
            return None
        user = self.users.get(record["user_id"])
        if not user:
            return None
        return AuthSession(
            access_token=access_token,
            user=AuthUser(id=user["id"], email=user["email"]),
            expires_at=record["expires_at"],
        )
