"""Test environment: must run before lunch_api is imported (settings and engine are module-level)."""

import os

os.environ["APP_ENV"] = "dev"
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-access-secret-with-at-least-32-bytes"
os.environ.pop("JWT_REFRESH_SECRET", None)
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["CORS_ORIGINS"] = "http://localhost:3000"
