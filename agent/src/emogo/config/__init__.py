"""EmoGo configuration module.

Usage:
    from emogo.config import get_settings

    settings = get_settings()
    print(settings.server_url)
"""

from functools import lru_cache

from emogo.config.settings import Settings

__all__ = ["Settings", "get_settings"]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    To reload settings, call get_settings.cache_clear() first.
    """
    return Settings()
