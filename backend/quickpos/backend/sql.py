# Overview: SQLAlchemy-backed implementations of the backend collaborators.

"""
SQL query and auth backends on top of Flask-SQLAlchemy.

Each public call is one unit of work: it commits on success and rolls back
and raises BackendError on failure. Nothing spans two calls, so a sequence of
calls made by a service is NOT atomic. Services that issue several writes
document their own partial-failure behavior.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, Mapping

from sqlalchemy import DateTime, Numeric
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Product, Sale, SaleItem, SessionToken, Store, StoreMembership, User
from quickpos.time_utils import parse_iso_datetime, utcnow
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

TABLES = {
    "stores": Store,
    "store_memberships": StoreMembership,
    "products": Product,
    "sales": Sale,
    "sale_items": SaleItem,
}


def _coerce_value(col, value: Any):
    if value is None:
        return None
    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(col.type, DateTime) and isinstance(value, str):
        dt = parse_iso_datetime(value)
        if dt is None:
            raise BackendError(f"invalid input syntax for type timestamp: \"{value}\"")
        return dt
    if isinstance(col.type, Numeric) and not isinstance(value, Decimal):
        return Decimal(str(value))
    return value


class SqlQueryBackend(QueryBackend):

    def _model(self, table: str):
        model = TABLES.get(table)
        if model is None:
            raise BackendError(f'relation "{table}" does not exist')
        return model

    def _column(self, model, table: str, name: str):
        columns = model.__table__.columns
        if name not in columns:
            raise BackendError(f'column "{name}" of relation "{table}" does not exist')
        return columns[name]

    def _query(self, table: str, filters: Mapping[str, Any] | None):
        model = self._model(table)
        query = db.session.query(model)
        for key, value in (filters or {}).items():
            column_name, op = split_filter_key(key)
            col = self._column(model, table, column_name)
            attr = getattr(model, column_name)
            if op == "in":
                query = query.filter(attr.in_([_coerce_value(col, v) for v in value]))
            elif op == "gte":
                query = query.filter(attr >= _coerce_value(col, value))
            elif op == "lt":
                query = query.filter(attr < _coerce_value(col, value))
            elif value is None:
                query = query.filter(attr.is_(None))
            else:
                query = query.filter(attr == _coerce_value(col, value))
        return model, query

    def select(self, table, filters=None, *, order_by=None, desc=False):
        try:
            model, query = self._query(table, filters)
            if order_by:
                self._column(model, table, order_by)
                attr = getattr(model, order_by)
                query = query.order_by(attr.desc() if desc else attr.asc())
            return [row.to_dict() for row in query.all()]
        except SQLAlchemyError as e:
            db.session.rollback()
            raise BackendError(str(getattr(e, "orig", None) or e))

    def insert(self, table: str, rows: Iterable[Mapping[str, Any]]) -> list[dict]:
        model = self._model(table)
        now = utcnow()
        created = []
        try:
            for row in rows:
                obj = model()
                for key, value in row.items():
                    col = self._column(model, table, key)
                    setattr(obj, key, _coerce_value(col, value))
                if obj.created_at is None:
                    obj.created_at = now
                db.session.add(obj)
                created.append(obj)
            db.session.commit()
        except BackendError:
            db.session.rollback()
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            raise BackendError(str(getattr(e, "orig", None) or e))
        return [obj.to_dict() for obj in created]

    def update(self, table, patch, filters):
        try:
            model, query = self._query(table, filters)
            objs = query.all()
            for obj in objs:
                for key, value in patch.items():
                    col = self._column(model, table, key)
                    setattr(obj, key, _coerce_value(col, value))
            db.session.commit()
        except BackendError:
            db.session.rollback()
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            raise BackendError(str(getattr(e, "orig", None) or e))
        return [obj.to_dict() for obj in objs]

    def delete(self, table, filters):
        try:
            _, query = self._query(table, filters)
            query.delete(synchronize_session=False)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise BackendError(str(getattr(e, "orig", None) or e))


class SqlAuthBackend(AuthBackend):
    """
    Accounts in the users table, sessions in session_tokens.

    SECURITY FEATURES:
    - bcrypt password hashes
    - Only SHA-256 token hashes are stored
    - 24-hour absolute timeout (SESSION_ABSOLUTE_TIMEOUT)
    - Revocable on sign-out
    """

    def __init__(self, *, bcrypt_rounds: int = 12):
        self.bcrypt_rounds = bcrypt_rounds

    def create_user(self, email: str, password: str) -> AuthUser:
        email = email.strip().lower()
        if db.session.query(User).filter_by(email=email).first():
            raise BackendError("A user with this email address has already been registered")
        user = User(email=email, password_hash=hash_password(password, rounds=self.bcrypt_rounds))
        try:
            db.session.add(user)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise BackendError(str(getattr(e, "orig", None) or e))
        return AuthUser(id=user.id, email=user.email)

    def delete_user(self, user_id: str) -> None:
        user = db.session.query(User).filter_by(id=user_id).first()
        if not user:
            raise BackendError("User not found")
        try:
            db.session.query(StoreMembership).filter_by(user_id=user_id).delete(synchronize_session=False)
            db.session.delete(user)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise BackendError(str(getattr(e, "orig", None) or e))

    def sign_in(self, email: str, password: str) -> AuthSession:
        user = db.session.query(User).filter_by(email=(email or "").strip().lower()).first()
        if not user or not verify_password(password or "", user.password_hash):
            raise InvalidCredentialsError("Invalid login credentials")

        token = generate_token()
        now = utcnow()
        session = SessionToken(
            user_id=user.id,
            token_hash=hash_token(token),
            created_at=now,
            expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        )
        user.last_login_at = now
        db.session.add(session)
        db.session.commit()

        return AuthSession(
            access_token=token,
            user=AuthUser(id=user.id, email=user.email),
            expires_at=session.expires_at,
        )

    def sign_out(self, access_token: str) -> None:
        session = db.session.query(SessionToken).filter_by(token_hash=hash_token(access_token)).first()
        if session and session.revoked_at is None:
            session.revoked_at = utcnow()
            db.session.commit()

    def get_session(self, access_token):
        if not access_token:
            return None
        session = (
            db.session.query(SessionToken)
            .filter_by(token_hash=hash_token(access_token), revoked_at=None)
            .first()
        )
        if not session or session.expires_at <= utcnow():
            return None
        user = session.user
        return AuthSession(
            access_token=access_token,
            user=AuthUser(id=user.id, email=user.email),
            expires_at=session.expires_at,
        )
