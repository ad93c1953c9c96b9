"""
Database client factory for Supabase.

The backend talks to Supabase through a single service-role AsyncClient
(bypasses RLS). The client is created once during application startup
and cached for the lifetime of the process.
"""

from typing import Optional
from supabase import acreate_client, AsyncClient

from .config import get_settings

# Module-level client cache
_service_client: Optional[AsyncClient] = None


async def init_supabase_client() -> AsyncClient:
    """
    Create the service-role Supabase client if it doesn't exist yet.

    Called from the FastAPI lifespan handler. Safe to call more than once.

    Returns:
        Supabase async client configured with service role key
    """
    global _service_client

    if _service_client is None:
        settings = get_settings()
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise RuntimeError(
                "Supabase configuration missing. "
                "Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY environment variables."
            )
        _service_client = await acreate_client(
            settings.supabase_url,
            settings.supabase_service_role_key,
        )

    return _service_client


def get_supabase_client() -> AsyncClient:
    """
    Get the cached service-role Supabase client.

    Use this for backend operations that need full database access,
    such as reconciling billing records from webhooks.

    Raises:
        RuntimeError: If init_supabase_client() has not run yet
    """
    if _service_client is None:
        raise RuntimeError(
            "Supabase client not initialized. "
            "Call init_supabase_client() during application startup."
        )
    return _service_client


def reset_client_cache() -> None:
    """
    Reset the cached database client.

    Useful for testing or when configuration changes.
    """
    global _service_client
    _service_client = None
