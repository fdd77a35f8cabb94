"""
Supabase client factory.

The feed only reads, and every read is awaited under a timeout, so the
async client is used throughout.  One client is created lazily and
reused for the lifetime of the process.
"""

from typing import Optional

from supabase import AsyncClient, acreate_client

from config.settings import Settings, get_settings


class SupabaseClientError(Exception):
    """Raised when Supabase client cannot be created."""
    pass


_client: Optional[AsyncClient] = None


async def get_supabase_client(settings: Optional[Settings] = None) -> AsyncClient:
    """
    Get the shared async Supabase client, creating it on first use.

    Args:
        settings: Settings to build the client from (defaults to get_settings())

    Returns:
        AsyncClient: The Supabase client instance

    Raises:
        SupabaseClientError: If client cannot be created
    """
    global _client
    if _client is not None:
        return _client
    try:
        settings = settings or get_settings()
        _client = await acreate_client(settings.supabase_url, settings.supabase_service_key)
    except Exception as e:
        raise SupabaseClientError(f"Failed to create Supabase client: {e}") from e
    return _client


async def get_supabase_client_optional() -> Optional[AsyncClient]:
    """
    Get the Supabase client, returning None if it cannot be created.

    Useful for graceful degradation when Supabase is not configured.
    """
    try:
        return await get_supabase_client()
    except SupabaseClientError:
        return None


def reset_supabase_client() -> None:
    """Drop the cached client (tests and settings reloads)."""
    global _client
    _client = None
