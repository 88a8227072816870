# backend/quickpos/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/quickpos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///quickpos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "sql" talks to the database above, "memory" keeps everything in-process
    QUICKPOS_BACKEND = os.environ.get("QUICKPOS_BACKEND", "sql")

    # Directory for the persisted catalog snapshot (page-load fallback).
    # Unset disables the fallback.
    CATALOG_STORAGE_DIR = os.environ.get("CATALOG_STORAGE_DIR")

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    SESSION_COOKIE_NAME = os.environ.get("SESSION_COOKIE_NAME", "quickpos_session")
    AUTH_COOKIE_NAME = os.environ.get("AUTH_COOKIE_NAME", "quickpos_token")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    QUICKPOS_BACKEND = "memory"
    CATALOG_STORAGE_DIR = None
    BCRYPT_ROUNDS = 4
    LOG_LEVEL = "DEBUG"
