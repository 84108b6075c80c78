"""Supabase client construction.

The client is built once by the process entry point and handed to every
storage adapter; no module in the package holds a client of its own.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .config import SupabaseSettings

if TYPE_CHECKING:
    from supabase import Client

logger = logging.getLogger(__name__)


def create_supabase_client(config: SupabaseSettings | None = None) -> Client:
    """Create a service-role Supabase client.

    Args:
        config: Connection settings. Defaults to values from the environment.

    Returns:
        supabase.Client ready for table queries.

    Raises:
        ValueError: If the URL or service key is missing.
    """
    config = config or SupabaseSettings()
    if not config.url or not config.service_key:
        raise ValueError(
            "SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY must be set in .env. "
            "See config/.env.example."
        )
    from supabase import create_client

    client = create_client(config.url, config.service_key)
    logger.info("Connected to Supabase: %s", config.url)
    return client
