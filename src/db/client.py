"""Supabase client initialization."""

from supabase import create_client, Client

from src.config import get_settings


def get_supabase_client() -> Client:
    """Get Supabase client instance.

    Raises:
        ValueError: If Supabase is not configured
    """
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_service_key:
        raise ValueError("Supabase is not configured (SUPABASE_URL, SUPABASE_SERVICE_KEY)")
    return create_client(settings.supabase_url, settings.supabase_service_key)
