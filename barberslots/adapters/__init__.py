"""
Adapters layer - External integrations (Supabase REST API).
"""

from .mock_store import MockStoreClient
from .supabase_client import SupabaseStoreClient

__all__ = ["MockStoreClient", "SupabaseStoreClient"]
