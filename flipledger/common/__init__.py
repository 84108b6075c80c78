# Common utilities and shared modules
"""
Shared components used by the marketplace clients and the delist pipeline:
- Data models (Pydantic schemas)
- Supabase client factory
- Logging configuration
- Project configuration
"""

from .config import settings, PROJECT_ROOT, CONFIG_DIR
from .database import create_supabase_client
from .logging import setup_logging

__all__ = [
    "settings",
    "PROJECT_ROOT",
    "CONFIG_DIR",
    "create_supabase_client",
    "setup_logging",
]
