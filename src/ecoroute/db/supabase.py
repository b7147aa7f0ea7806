"""Supabase client for the route and truck stores."""

import logging
from functools import lru_cache
from typing import Optional

from supabase import create_client, Client
from ..config import settings


@lru_cache()
def get_supabase_client(url: Optional[str] = None, key: Optional[str] = None) -> Client | None:
    """Get a cached Supabase client for the given credentials.

    Falls back to the process settings when ``url``/``key`` are omitted.

    Returns:
        Supabase Client instance if configured, None otherwise.
        Note: This does not test the connection - actual queries may fail with network errors.
    """
    url = url or settings.supabase_url
    key = key or settings.supabase_key
    if not url or not key:
        logging.warning("Supabase credentials not configured (missing URL or key)")
        return None

    try:
        return create_client(url, key)
    except Exception as e:
        logging.error(f"Failed to create Supabase client: {e}")
        return None
