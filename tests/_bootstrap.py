"""Test helper that normalizes sys.path and environment defaults."""

from __future__ import annotations

import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


_DEFAULT_ENV_VARS: dict[str, str] = {
    "GOOGLE_CLIENT_ID": "test-google-client-id",
    "GOOGLE_CLIENT_SECRET": "test-google-client-secret",
    "AIRTABLE_CLIENT_ID": "test-airtable-client-id",
    "AIRTABLE_CLIENT_SECRET": "test-airtable-client-secret",
    "JWT_SECRET": "test-jwt-secret-with-at-least-32-bytes",
    "OAUTH_REDIRECT_URL": "https://auth.example.com",
    "STATE_STORE_BACKEND": "memory",
}

for key, value in _DEFAULT_ENV_VARS.items():
    os.environ.setdefault(key, value)
