from functools import lru_cache

from supabase import Client, create_client

from .config import get_settings


@lru_cache()
def get_supabase() -> Client:
    settings = get_settings()
    url, key = settings.supabase_credentials()

    if "your-project.supabase.co" in url:
        raise RuntimeError(
            f"Supabase URL for {settings.env} is still the placeholder (your-project). "
            "Fill in your real project URL and service key."
        )
    return create_client(url, key)
