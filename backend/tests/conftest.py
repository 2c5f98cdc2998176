"""Root conftest — shared test configuration."""

import os

# Ensure tests never reach a real database or real Airtable credentials
os.environ.setdefault("AIRTABLE_CLIENT_ID", "test-client-id")
os.environ.setdefault("AIRTABLE_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
