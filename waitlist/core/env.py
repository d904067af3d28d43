"""
Centralized environment detection utilities.

All functions read ENV only. Results are cached; call ``clear_env_cache()``
when a test changes ENV.
"""
import os
from functools import lru_cache


@lru_cache(maxsize=1)
def get_env_name() -> str:
    """
    Get the current environment name from ENV variable.

    Returns:
        Environment name (lowercase): 'local', 'dev', 'staging', 'prod', etc.
        Defaults to 'dev' if not set.
    """
    return os.getenv("ENV", "dev").lower()


@lru_cache(maxsize=1)
def is_local_env() -> bool:
    """True if ENV is 'local' or 'dev'."""
    return get_env_name() in {"local", "dev"}


def clear_env_cache():
    """Clear all cached environment lookups (useful for testing)"""
    get_env_name.cache_clear()
    is_local_env.cache_clear()
