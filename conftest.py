"""Global pytest configuration."""

import os

# Set test defaults before any application imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("EMBEDDING_PROVIDER", "hashing")
