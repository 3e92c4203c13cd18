"""
Supabase client initialization.

This module contains *only* the database connection setup. The client is created on
first use so that importing repository modules never requires credentials.

Environment variables required:
- SUPABASE_URL: Your Supabase project URL
- SUPABASE_KEY: Your Supabase API key (use a server-side key only on the backend)
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import Client, create_client  # type: ignore[import-not-found]

# Load environment variables from .env file
# Look for .env in the crm-platform directory
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """Return the shared Supabase client, creating it from the environment on first call."""

    # Read credentials from the environment to avoid hard-coding secrets in code.
    supabase_url: str | None = os.getenv("SUPABASE_URL")
    supabase_key: str | None = os.getenv("SUPABASE_KEY")

    if not supabase_url:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_URL. "
            "Set SUPABASE_URL to your Supabase project URL."
        )

    if not supabase_key:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_KEY. "
            "Set SUPABASE_KEY to your Supabase API key."
        )

    return create_client(supabase_url, supabase_key)


__all__ = ["get_supabase"]
